"""
Editing session: one open save, its original and working documents.

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

import logging
from typing import Any, Optional

from hkflea import codec, fields
from hkflea.codec import Mode
from hkflea.document import canonicalize
from hkflea.errors import DecodeError, SessionError
from hkflea.fields import FlagValue
from hkflea.history import HistoryEntry, RecentFileCache

logger = logging.getLogger(__name__)


class Session:
    """
    Holds the document pair for the open save and wires codec, flag
    projection and history together.

    Usage:
        session = Session(cache, mode=Mode.ENCRYPTED)
        session.open(Path("user1.dat").read_bytes(), "user1.dat")
        session.set_flag("SavedFlea_Bone_06", True)
        Path("user1.dat").write_bytes(session.export_encrypted())
    """

    def __init__(self, cache: Optional[RecentFileCache] = None, mode: Mode = Mode.ENCRYPTED):
        self.cache = cache if cache is not None else RecentFileCache()
        self.mode = Mode.from_name(mode)
        self.name: Optional[str] = None
        self._original: Optional[str] = None
        self._current: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._current is not None

    def _require_open(self) -> str:
        if self._current is None:
            raise SessionError()
        return self._current

    @property
    def document(self) -> str:
        return self._require_open()

    @property
    def original(self) -> str:
        self._require_open()
        return self._original

    @property
    def is_modified(self) -> bool:
        return self.is_open and self._current != self._original

    @property
    def report(self) -> str:
        return fields.project(self._require_open())

    @property
    def flags(self) -> list[tuple[str, FlagValue]]:
        return fields.extract_flags(self._require_open())

    # ------------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------------

    def open(self, raw: bytes, name: str, mode: Optional[Mode] = None) -> str:
        """Decode a save and make it the open document. Returns its report.

        On DecodeError the previously open document is kept.
        """
        mode = self.mode if mode is None else Mode.from_name(mode)
        try:
            document = codec.decode(raw, mode)
        except DecodeError as e:
            logger.warning("Failed to decode %s as %s save: %s", name, mode.value, e)
            raise
        return self._set_document(document, name)

    def open_text(self, text: str, name: str) -> str:
        """Open an already-decoded JSON document."""
        try:
            document = canonicalize(text)
        except ValueError as e:
            raise DecodeError(str(e)) from e
        return self._set_document(document, name)

    def open_history(self, fp: str) -> str:
        entry = self.cache.get(fp)
        if entry is None:
            raise KeyError(f"No history entry with fingerprint {fp}")
        return self._set_document(entry.document_text, entry.display_name)

    def _set_document(self, document: str, name: str) -> str:
        report = fields.project(document)
        self._original = self._current = document
        self.name = name
        self.cache.insert(HistoryEntry.create(name, document, report))
        logger.info("Opened %s", name)
        return report

    # ------------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------------

    def apply_report(self, report_text: str) -> str:
        """Merge an edited report into the working document. Returns the new report."""
        self._current = fields.merge(report_text, self._require_open())
        return self.report

    def set_flag(self, name: str, value: Any) -> FlagValue:
        self._current = fields.set_flag(self._require_open(), name, value)
        return dict(self.flags)[name]

    def reset(self) -> None:
        """Discard edits, back to the document as it was opened."""
        self._require_open()
        self._current = self._original

    # ------------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------------

    def export(self, mode: Optional[Mode] = None) -> bytes:
        """Encode the working document. EncodeError leaves the session as is."""
        mode = self.mode if mode is None else Mode.from_name(mode)
        return codec.encode(self._require_open(), mode)

    def export_encrypted(self) -> bytes:
        return self.export(Mode.ENCRYPTED)

    def export_plain(self) -> bytes:
        return self.export(Mode.PLAIN)
