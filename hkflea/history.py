"""
Recent-file history.

A bounded, newest-first list of previously opened saves, unique by report
fingerprint. Every mutation is persisted through a HistoryStorage; storage
failures are logged and never reach the caller.

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
import os
import threading
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

import yaml

from hkflea.errors import StorageError
from hkflea.fingerprint import fingerprint

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
HISTORY_FORMAT = "hk-flea-editor history v1"


@dataclass(frozen=True)
class HistoryEntry:
    """One previously opened save. Replaced wholesale, never edited."""
    fingerprint: str
    display_name: str
    document_text: str
    report_text: str
    timestamp: str

    @classmethod
    def create(cls, display_name: str, document_text: str, report_text: str) -> "HistoryEntry":
        return cls(
            fingerprint=fingerprint(report_text),
            display_name=display_name,
            document_text=document_text,
            report_text=report_text,
            timestamp=datetime.now().isoformat(timespec="seconds"),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if not isinstance(value, str):
                raise ValueError(f"history record field '{f.name}' is missing or not a string")
            values[f.name] = value
        if values["fingerprint"] != fingerprint(values["report_text"]):
            raise ValueError(f"fingerprint {values['fingerprint']!r} does not match the report")
        return cls(**values)


# ============================================================================
# Storage
# ============================================================================

class HistoryStorage(Protocol):
    """Durable blob store for the serialized history."""

    def load(self) -> Optional[bytes]:
        """Return the stored blob, or None if nothing was saved yet."""

    def save(self, data: bytes) -> None:
        ...


class MemoryHistoryStorage:
    """Keeps the blob in memory; used when no history file is configured."""

    def __init__(self, data: Optional[bytes] = None):
        self.data = data

    def load(self) -> Optional[bytes]:
        return self.data

    def save(self, data: bytes) -> None:
        self.data = data


class FileHistoryStorage:
    """Stores the blob in a file, replaced atomically on save."""

    def __init__(self, path: "str | os.PathLike"):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

    def save(self, data: bytes) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(data)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e


# ============================================================================
# Cache
# ============================================================================

class RecentFileCache:
    """
    Newest-first history with move-to-front on duplicate insert.

    Usage:
        cache = RecentFileCache(FileHistoryStorage("history.yaml"), capacity=10)
        cache.restore()
        cache.insert(HistoryEntry.create("user1.dat", document, report))
    """

    def __init__(self, storage: Optional[HistoryStorage] = None, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self.storage = storage if storage is not None else MemoryHistoryStorage()
        self.capacity = capacity
        self._entries: list[HistoryEntry] = []
        self._lock = threading.RLock()

    @property
    def entries(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries)

    def __contains__(self, fp: str) -> bool:
        return self.get(fp) is not None

    def get(self, fp: str) -> Optional[HistoryEntry]:
        with self._lock:
            for entry in self._entries:
                if entry.fingerprint == fp:
                    return entry
        return None

    def _index_of(self, fp: str) -> int:
        for i, entry in enumerate(self._entries):
            if entry.fingerprint == fp:
                return i
        return -1

    def insert(self, entry: HistoryEntry) -> None:
        """Put entry at the front, dropping any stale copy and the oldest overflow."""
        with self._lock:
            index = self._index_of(entry.fingerprint)
            if index >= 0:
                del self._entries[index]
            self._entries.insert(0, entry)
            evicted = self._entries[self.capacity:]
            del self._entries[self.capacity:]
            for old in evicted:
                logger.debug("Evicted history entry %s (%s)", old.fingerprint[:12], old.display_name)
            self.persist()

    def remove(self, fp: str) -> bool:
        """Remove by fingerprint. Returns False when nothing matched."""
        with self._lock:
            index = self._index_of(fp)
            if index < 0:
                return False
            del self._entries[index]
            self.persist()
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.persist()

    # ------------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------------

    def dumps(self) -> bytes:
        with self._lock:
            output = {
                "_format": HISTORY_FORMAT,
                "entries": [entry.to_dict() for entry in self._entries],
            }
        return yaml.safe_dump(output, allow_unicode=True, sort_keys=False, default_flow_style=False, width=120).encode("utf-8")

    def persist(self) -> bool:
        """Write the list to storage. Returns False if the write failed."""
        with self._lock:
            data = self.dumps()
            try:
                self.storage.save(data)
            except StorageError as e:
                logger.warning("Could not save history, keeping it in memory: %s", e)
                return False
        return True

    def restore(self) -> list[HistoryEntry]:
        """Replace the in-memory list with the stored one.

        Missing or malformed storage gives an empty history.
        """
        with self._lock:
            self._entries = self._load_entries()
            return list(self._entries)

    def _load_entries(self) -> list[HistoryEntry]:
        try:
            blob = self.storage.load()
        except StorageError as e:
            logger.warning("Could not load history: %s", e)
            return []
        if not blob:
            return []

        try:
            data = yaml.safe_load(blob)
        except yaml.YAMLError as e:
            logger.warning("History storage is not valid YAML, starting empty: %s", e)
            return []
        records = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(records, list):
            logger.warning("History storage has no entry list, starting empty")
            return []

        entries = []
        seen = set()
        for record in records:
            try:
                entry = HistoryEntry.from_dict(record if isinstance(record, dict) else {})
            except ValueError as e:
                logger.warning("Skipping malformed history record: %s", e)
                continue
            if entry.fingerprint in seen:
                continue
            seen.add(entry.fingerprint)
            entries.append(entry)
        return entries[:self.capacity]
