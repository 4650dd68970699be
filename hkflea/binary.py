"""
Binary reader/writer helpers for the .NET BinaryFormatter frame.

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

import struct

# A 32-bit length never needs more than five 7-bit groups
MAX_7BIT_BYTES = 5


class BinaryReader:
    """Helper class for reading binary data in little-endian format."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self.data):
            raise ValueError(f"Not enough data: need {n}, have {self.remaining}")
        result = self.data[self.pos:self.pos + n]
        self.pos += n
        return result

    def read_u8(self) -> int:
        return struct.unpack("<B", self.read_bytes(1))[0]

    def read_7bit_int(self) -> int:
        """Read a 7-bit encoded integer (low group first, high bit = more)."""
        result = 0
        for i in range(MAX_7BIT_BYTES):
            b = self.read_u8()
            result |= (b & 0x7F) << (7 * i)
            if not b & 0x80:
                return result
        raise ValueError("7-bit encoded integer is too long")


class BinaryWriter:
    """Helper class for writing binary data in little-endian format."""

    def __init__(self):
        self.data = bytearray()

    def write_bytes(self, data: bytes):
        self.data.extend(data)

    def write_u8(self, value: int):
        self.data.extend(struct.pack("<B", value & 0xFF))

    def write_7bit_int(self, value: int):
        if value < 0:
            raise ValueError(f"Cannot encode negative length {value}")
        while value >= 0x80:
            self.write_u8((value & 0x7F) | 0x80)
            value >>= 7
        self.write_u8(value)

    def get_bytes(self) -> bytes:
        return bytes(self.data)
