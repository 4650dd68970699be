"""
Error types raised by the save editor.

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


class SaveEditorError(Exception):
    """Base class for all editor errors."""

    message = "Save editor error."

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(f"{self.message} {detail}".strip())


class DecodeError(SaveEditorError):
    """Raw bytes are truncated, corrupt, or were read with the wrong mode."""

    message = "The file could not be decoded."


class EncodeError(SaveEditorError):
    """The working document is not a valid JSON object."""

    message = "Invalid document, reset or fix it before saving."


class StorageError(SaveEditorError):
    """History storage could not be read or written."""

    message = "History storage failed."


class ConfigError(SaveEditorError):
    """Configuration file is unreadable or holds invalid values."""

    message = "Invalid configuration."


class SessionError(SaveEditorError):
    """An operation needs an open save file."""

    message = "No save file is open."
