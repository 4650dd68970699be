"""
SavedFlea flag projection.

The editable report is a sparse view of a much larger save document: only
the flags in FLEA_FIELDS are shown, one "<name>: <true|false|n/a>" line each.
Edits are always merged back into the full original document, never rebuilt
from the report alone.

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

import copy
import logging
import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Union

from hkflea.document import dump_document, parse_document

logger = logging.getLogger(__name__)

Document = Union[str, Mapping]

# ============================================================================
# Flag definitions
# ============================================================================

SECTION_KEY = "playerData"

# Report order follows this tuple
FLEA_FIELDS = (
    "SavedFlea_Bone_06",
    "SavedFlea_Dock_16",
    "SavedFlea_Bone_East_05",
    "SavedFlea_Bone_East_17b",
    "SavedFlea_Ant_03",
    "SavedFlea_Greymoor_15b",
    "SavedFlea_Greymoor_06",
    "SavedFlea_Shellwood_03",
    "SavedFlea_Bone_East_10_Church",
    "SavedFlea_Coral_35",
    "SavedFlea_Dust_12",
    "SavedFlea_Dust_09",
    "SavedFlea_Belltown_04",
    "SavedFlea_Crawl_06",
    "SavedFlea_Slab_Cell",
    "SavedFlea_Shadow_28",
    "SavedFlea_Dock_03d",
    "SavedFlea_Under_23",
    "SavedFlea_Shadow_10",
    "SavedFlea_Song_14",
    "SavedFlea_Coral_24",
    "SavedFlea_Peak_05c",
    "SavedFlea_Library_09",
    "SavedFlea_Song_11",
    "SavedFlea_Library_01",
    "SavedFlea_Under_21",
    "SavedFlea_Slab_06",
)


class FlagValue(Enum):
    """Tri-state flag value. ABSENT means the key is not in the document."""
    TRUE = "true"
    FALSE = "false"
    ABSENT = "n/a"

    @classmethod
    def of(cls, section: Mapping, name: str) -> "FlagValue":
        if name not in section:
            return cls.ABSENT
        return cls.TRUE if section[name] else cls.FALSE

    @classmethod
    def coerce(cls, value: Any) -> "FlagValue":
        """Accept a FlagValue, a bool, None (absent) or a report token."""
        if isinstance(value, FlagValue):
            return value
        if value is None:
            return cls.ABSENT
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid flag value {value!r} (expected true, false or n/a)") from None


# ============================================================================
# Report format
# ============================================================================

BANNER = "# " + "=" * 58
REPORT_HEADER = (
    BANNER,
    "# SavedFlea Fields Status",
    "# Set each value to true, false or n/a (n/a removes the field).",
    BANNER,
)
REPORT_FOOTER = (BANNER,)
MALFORMED_REPORT = "# Error: the save data is not a readable JSON document.\n"

REPORT_LINE = re.compile(r"^([^:\s]+):\s*(true|false|n/a)$", re.IGNORECASE)


def format_report(flags: Sequence[tuple[str, FlagValue]]) -> str:
    lines = list(REPORT_HEADER)
    lines.extend(f"{name}: {value.value}" for name, value in flags)
    lines.extend(REPORT_FOOTER)
    return "\n".join(lines) + "\n"


def parse_report(text: str, allow_list: Sequence[str] = FLEA_FIELDS) -> dict[str, FlagValue]:
    """Collect allow-listed flag edits from report text; other lines are ignored."""
    allowed = set(allow_list)
    edits = {}
    for line in text.splitlines():
        match = REPORT_LINE.match(line.strip())
        if not match:
            continue
        name, token = match.groups()
        if name not in allowed:
            logger.debug("Ignoring flag outside the allow-list: %s", name)
            continue
        edits[name] = FlagValue(token.lower())
    return edits


# ============================================================================
# Projection and merge
# ============================================================================

def _load(document: Document) -> dict:
    if isinstance(document, str):
        return parse_document(document)
    if isinstance(document, Mapping):
        return copy.deepcopy(dict(document))
    raise TypeError(f"Unsupported document type: {type(document).__name__}")


def _section(data: dict) -> Mapping:
    # null or missing both mean no flags yet
    section = data.get(SECTION_KEY) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"'{SECTION_KEY}' is not an object")
    return section


def _read_flags(data: dict, allow_list: Sequence[str]) -> list[tuple[str, FlagValue]]:
    section = _section(data)
    return [(name, FlagValue.of(section, name)) for name in allow_list]


def extract_flags(document: Document, allow_list: Sequence[str] = FLEA_FIELDS) -> list[tuple[str, FlagValue]]:
    """Flag table for a document; unreadable documents show every flag as n/a."""
    try:
        return _read_flags(_load(document), allow_list)
    except (TypeError, ValueError) as e:
        logger.warning("Error extracting flea fields: %s", e)
        return [(name, FlagValue.ABSENT) for name in allow_list]


def project(document: Document, allow_list: Sequence[str] = FLEA_FIELDS) -> str:
    """Render the editable report for a document.

    Never raises: a malformed document yields MALFORMED_REPORT.
    """
    try:
        flags = _read_flags(_load(document), allow_list)
    except (TypeError, ValueError) as e:
        logger.warning("Cannot build flag report: %s", e)
        return MALFORMED_REPORT
    return format_report(flags)


def merge(report_text: str, base_document: Document, allow_list: Sequence[str] = FLEA_FIELDS) -> str:
    """Apply an edited report to the full document and return canonical text.

    "true"/"false" store a JSON boolean and "n/a" deletes the key. Flags that
    already project to the requested value are left as stored. If the base
    document cannot be edited, document text is returned unchanged and a
    mapping is returned as its canonical text.
    """
    edits = parse_report(report_text, allow_list)
    try:
        data = _load(base_document)
    except (TypeError, ValueError) as e:
        logger.warning("Error updating flea fields: %s", e)
        return base_document
    section = data.get(SECTION_KEY)
    if not isinstance(section, dict):
        logger.warning("Error updating flea fields: '%s' object is missing", SECTION_KEY)
        return base_document if isinstance(base_document, str) else dump_document(data)

    for name, value in edits.items():
        if FlagValue.of(section, name) is value:
            continue
        if value is FlagValue.ABSENT:
            del section[name]
        else:
            section[name] = value is FlagValue.TRUE
    return dump_document(data)


def set_flag(document: str, name: str, value: Any, allow_list: Sequence[str] = FLEA_FIELDS) -> str:
    """Change a single flag, as a one-line merge."""
    if name not in allow_list:
        raise KeyError(f"{name} is not an editable flag")
    flag = FlagValue.coerce(value)
    return merge(f"{name}: {flag.value}", document, allow_list)
