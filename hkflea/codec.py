"""
Save file codec.

Converts between the raw bytes of a Hollow Knight / Silksong save file and
the canonical JSON text the editor works on.

PC saves (Mode.ENCRYPTED) are a .NET BinaryFormatter string record:

    header(22) + payload_length(7-bit int) + payload + terminator(0x0B)

where the payload is base64 of AES-256-ECB ciphertext (PKCS#7 padded) of the
JSON document. Nintendo Switch saves (Mode.PLAIN) are the JSON text itself.

Copyright (C) 2026 wszqkzqk <wszqkzqk@qq.com>

This library is free software; you can redistribute it and/or
modify it under the terms of the GNU Lesser General Public
License as published by the Free Software Foundation; either
version 2.1 of the License, or (at your option) any later version.

This library is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
Lesser General Public License for more details.

You should have received a copy of the GNU Lesser General Public
License along with this library; if not, write to the Free Software
Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301  USA
"""

import base64
import binascii
import logging
from enum import Enum

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from hkflea.binary import BinaryReader, BinaryWriter
from hkflea.document import canonicalize, dump_compact, parse_document
from hkflea.errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

CSHARP_HEADER = bytes([
    0x00, 0x01, 0x00, 0x00, 0x00, 0xFF, 0xFF, 0xFF, 0xFF, 0x01, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x06, 0x01, 0x00, 0x00, 0x00,
])
FRAME_TERMINATOR = 0x0B
# header + at least one length byte + terminator
MIN_FRAME_SIZE = len(CSHARP_HEADER) + 2

SAVE_KEY = b"UKu52ePUBwetZ9wNX88o54dnfKRu0T1l"
AES_BLOCK_BYTES = algorithms.AES.block_size // 8


class Mode(Enum):
    """Which on-disk format a transform reads or writes."""
    ENCRYPTED = "encrypted"  # PC / Steam
    PLAIN = "plain"  # Nintendo Switch

    @classmethod
    def from_name(cls, name: "str | Mode") -> "Mode":
        if isinstance(name, Mode):
            return name
        try:
            return cls(name.lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown mode {name!r} (expected one of: {choices})") from None


# ============================================================================
# Encrypted frame
# ============================================================================

def _deframe(raw: bytes) -> bytes:
    """Strip the BinaryFormatter frame and return the base64 payload."""
    if len(raw) < MIN_FRAME_SIZE:
        raise DecodeError(f"File is too small ({len(raw)} bytes, need at least {MIN_FRAME_SIZE}).")

    reader = BinaryReader(raw)
    if reader.read_bytes(len(CSHARP_HEADER)) != CSHARP_HEADER:
        raise DecodeError("Unexpected file header (plaintext saves need Switch mode).")
    if raw[-1] != FRAME_TERMINATOR:
        raise DecodeError(f"Missing frame terminator, got 0x{raw[-1]:02x}.")

    try:
        length = reader.read_7bit_int()
    except ValueError as exc:
        raise DecodeError("Malformed payload length.") from exc
    available = reader.remaining - 1
    if length != available:
        raise DecodeError(f"Payload length mismatch: header says {length}, frame holds {available}.")
    return reader.read_bytes(length)


def _frame(payload: bytes) -> bytes:
    writer = BinaryWriter()
    writer.write_bytes(CSHARP_HEADER)
    writer.write_7bit_int(len(payload))
    writer.write_bytes(payload)
    writer.write_u8(FRAME_TERMINATOR)
    return writer.get_bytes()


def _cipher() -> Cipher:
    return Cipher(algorithms.AES(SAVE_KEY), modes.ECB())


def _decrypt(payload: bytes) -> bytes:
    try:
        ciphertext = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise DecodeError("Payload is not valid base64.") from exc
    if not ciphertext or len(ciphertext) % AES_BLOCK_BYTES:
        raise DecodeError(f"Ciphertext length {len(ciphertext)} is not a multiple of {AES_BLOCK_BYTES}.")

    decryptor = _cipher().decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise DecodeError("Invalid padding, the file is corrupt or not a save.") from exc


def _encrypt(plaintext: bytes) -> bytes:
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _cipher().encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(ciphertext)


# ============================================================================
# Public API
# ============================================================================

def _load_text(text: str) -> str:
    try:
        return canonicalize(text)
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError
        raise DecodeError(f"Content is not a JSON object: {exc}") from exc


def decode(raw: bytes, mode: Mode = Mode.ENCRYPTED) -> str:
    """Decode raw save bytes into canonical document text."""
    mode = Mode.from_name(mode)
    if mode is Mode.ENCRYPTED:
        plaintext = _decrypt(_deframe(raw))
        encoding = "utf-8"
    else:
        plaintext = raw
        encoding = "utf-8-sig"

    try:
        text = plaintext.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DecodeError("Content is not UTF-8 text (encrypted saves need PC mode).") from exc

    document = _load_text(text)
    logger.debug("Decoded %d bytes (%s) into %d characters", len(raw), mode.value, len(document))
    return document


def encode(text: str, mode: Mode = Mode.ENCRYPTED) -> bytes:
    """Encode document text into raw save bytes."""
    mode = Mode.from_name(mode)
    try:
        data = parse_document(text)
    except (TypeError, ValueError) as exc:
        raise EncodeError(str(exc)) from exc

    plaintext = dump_compact(data).encode("utf-8")
    if mode is Mode.PLAIN:
        raw = plaintext
    else:
        raw = _frame(_encrypt(plaintext))
    logger.debug("Encoded %d characters (%s) into %d bytes", len(text), mode.value, len(raw))
    return raw

