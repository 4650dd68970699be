"""
Editor configuration loaded from a YAML file.

Example config.yaml:

    history_path: ~/.config/hkflea/history.yaml
    history_capacity: 10
    mode: encrypted        # or "plain" for Nintendo Switch saves
    log_level: WARNING

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
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from hkflea.codec import Mode
from hkflea.errors import ConfigError
from hkflea.history import DEFAULT_CAPACITY, FileHistoryStorage, RecentFileCache

logger = logging.getLogger(__name__)

CONFIG_ENV = "HKFLEA_CONFIG"
CONFIG_DIR = Path("~/.config/hkflea")
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EditorConfig:
    """Settings for the command line editor."""
    history_path: Path = field(default_factory=lambda: CONFIG_DIR / "history.yaml")
    history_capacity: int = DEFAULT_CAPACITY
    mode: Mode = Mode.ENCRYPTED
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditorConfig":
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)

        config = cls()
        if "history_path" in data:
            if not isinstance(data["history_path"], str) or not data["history_path"]:
                raise ConfigError("history_path must be a non-empty string")
            config.history_path = Path(data["history_path"])
        if "history_capacity" in data:
            capacity = data["history_capacity"]
            if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
                raise ConfigError(f"history_capacity must be a positive integer, got {capacity!r}")
            config.history_capacity = capacity
        if "mode" in data:
            try:
                config.mode = Mode.from_name(str(data["mode"]))
            except ValueError as e:
                raise ConfigError(str(e)) from e
        if "log_level" in data:
            level = str(data["log_level"]).upper()
            if level not in LOG_LEVELS:
                raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {data['log_level']!r}")
            config.log_level = level
        return config

    def make_cache(self) -> RecentFileCache:
        cache = RecentFileCache(FileHistoryStorage(self.history_path), capacity=self.history_capacity)
        cache.restore()
        return cache


def load_config(path: Optional[str] = None) -> EditorConfig:
    """Load config from path, $HKFLEA_CONFIG, or the default location.

    A missing file at the default location means all defaults; a missing
    file that was asked for explicitly is an error.
    """
    explicit = path or os.environ.get(CONFIG_ENV)
    config_path = Path(explicit if explicit else DEFAULT_CONFIG_PATH).expanduser()

    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}") from None
        return EditorConfig()
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"{config_path} is not valid YAML: {e}") from e
    if data is None:
        return EditorConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return EditorConfig.from_dict(data)
