"""
Structured document helpers.

A save document is a JSON object. Key order from the source is kept, so
dump_document(parse_document(s)) is stable once s is canonical.

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

import json
from typing import Any

INDENT = 2


def parse_document(text: str) -> dict[str, Any]:
    """Parse document text, raising ValueError unless it is a JSON object."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def dump_document(data: dict[str, Any]) -> str:
    """Serialize to the canonical, indented form shown to the user."""
    return json.dumps(data, indent=INDENT, ensure_ascii=False)


def dump_compact(data: dict[str, Any]) -> str:
    """Serialize without whitespace, the form the game writes."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def canonicalize(text: str) -> str:
    return dump_document(parse_document(text))
