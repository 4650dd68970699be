from pathlib import Path

import pytest

from hkflea.codec import Mode
from hkflea.config import CONFIG_ENV, EditorConfig, load_config
from hkflea.errors import ConfigError
from hkflea.history import DEFAULT_CAPACITY


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the real ~/.config/hkflea out of the tests."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    return tmp_path


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults_when_no_file():
    config = load_config()
    assert config.history_capacity == DEFAULT_CAPACITY
    assert config.mode is Mode.ENCRYPTED
    assert config.log_level == "WARNING"
    assert config.history_path == Path("~/.config/hkflea/history.yaml")


def test_default_location(isolated_home):
    config_dir = isolated_home / ".config" / "hkflea"
    config_dir.mkdir(parents=True)
    _write(config_dir / "config.yaml", "history_capacity: 4\n")
    assert load_config().history_capacity == 4


def test_explicit_file(tmp_path):
    path = _write(tmp_path / "cfg.yaml", "\n".join([
        "history_path: /tmp/h.yaml",
        "history_capacity: 3",
        "mode: PLAIN",
        "log_level: debug",
    ]))
    config = load_config(path)
    assert config.history_path == Path("/tmp/h.yaml")
    assert config.history_capacity == 3
    assert config.mode is Mode.PLAIN
    assert config.log_level == "DEBUG"


def test_env_variable(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV, _write(tmp_path / "env.yaml", "mode: plain\n"))
    assert load_config().mode is Mode.PLAIN


def test_empty_file(tmp_path):
    assert load_config(_write(tmp_path / "empty.yaml", "")) == EditorConfig()


def test_unknown_keys_ignored(tmp_path):
    config = load_config(_write(tmp_path / "cfg.yaml", "colour: blue\nhistory_capacity: 2\n"))
    assert config.history_capacity == 2


def test_explicit_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize("text", [
    "history_capacity: 0",
    "history_capacity: ten",
    "history_capacity: true",
    "mode: switch",
    "log_level: LOUD",
    "history_path: 5",
    "- a list",
    "{{{",
])
def test_invalid_config(tmp_path, text):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path / "bad.yaml", text))


def test_make_cache_restores_history(tmp_path, make_entry):
    config = EditorConfig(history_path=tmp_path / "history.yaml", history_capacity=2)
    first = config.make_cache()
    first.insert(make_entry(1))

    second = config.make_cache()
    assert second.capacity == 2
    assert [e.display_name for e in second] == ["user1.dat"]
