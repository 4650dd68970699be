"""
Hollow Knight: Silksong save codec and SavedFlea flag editor.

Provides:
- Decode/encode of PC (encrypted) and Switch (plain) save files
- Editable text report of the SavedFlea flags and merge back into the save
- Recent-file history deduplicated by report fingerprint

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

from hkflea.codec import Mode, decode, encode
from hkflea.errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    SaveEditorError,
    SessionError,
    StorageError,
)
from hkflea.fields import FLEA_FIELDS, FlagValue, extract_flags, merge, project
from hkflea.fingerprint import fingerprint
from hkflea.history import HistoryEntry, RecentFileCache
from hkflea.session import Session

__version__ = "1.0.0"

__all__ = [
    "Mode",
    "decode",
    "encode",
    "SaveEditorError",
    "DecodeError",
    "EncodeError",
    "StorageError",
    "ConfigError",
    "SessionError",
    "FLEA_FIELDS",
    "FlagValue",
    "extract_flags",
    "project",
    "merge",
    "fingerprint",
    "HistoryEntry",
    "RecentFileCache",
    "Session",
]
