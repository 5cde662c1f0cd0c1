"""Tests for the JSON config loader."""

import json
import logging

from mprisctl.lib import config
from mprisctl.lib.config import DEFAULT_SOCKET_PATH, cfg, reload_config, socket_path


def _write(tmp_path, data, name="config.json"):
    path = tmp_path / name
    path.write_text(data if isinstance(data, str) else json.dumps(data))
    return str(path)


def test_values_come_from_the_given_file(tmp_path):
    reload_config(_write(tmp_path, {"poll": {"interval": 0.5}, "socket": {"path": "/run/x.sock"}}))
    assert cfg("poll", "interval", default=0.25) == 0.5
    assert cfg("socket", "path") == "/run/x.sock"
    assert cfg("poll") == {"interval": 0.5}


def test_missing_values_fall_back_to_default(tmp_path):
    reload_config(_write(tmp_path, {"poll": {"interval": None}, "log": "verbose"}))
    assert cfg("poll", "interval", default=0.25) == 0.25
    assert cfg("poll", "timeout", default=2.0) == 2.0
    assert cfg("status", "port") is None
    assert cfg("log", "level", default="INFO") == "INFO"
    assert cfg("registry", default={}) == {}


def test_invalid_json_is_skipped(tmp_path, caplog):
    with caplog.at_level(logging.ERROR, logger="mprisctl.lib.config"):
        assert reload_config(_write(tmp_path, "{not json")) == {}
    assert "Invalid JSON" in caplog.text


def test_non_object_config_is_skipped(tmp_path):
    assert reload_config(_write(tmp_path, "[1, 2]")) == {}


def test_missing_file_gives_empty_config(tmp_path):
    assert reload_config(str(tmp_path / "nope.json")) == {}


def test_config_is_cached(tmp_path):
    path = _write(tmp_path, {"poll": {"interval": 1}})
    reload_config(path)
    _write(tmp_path, {"poll": {"interval": 2}})
    assert config.load_config() is config.load_config()
    assert cfg("poll", "interval") == 1


def test_suspicious_values_are_reported(tmp_path, caplog):
    data = {"bogus": {}, "poll": {"interval": -1}, "registry": {"type": "upnp"},
            "status": {"host": "0.0.0.0", "port": 8080}}
    with caplog.at_level(logging.WARNING, logger="mprisctl.lib.config"):
        reload_config(_write(tmp_path, data))
    assert "unknown section 'bogus'" in caplog.text
    assert "poll.interval" in caplog.text
    assert "registry.type" in caplog.text
    assert "not a loopback address" in caplog.text


class TestSocketPath:

    def test_default(self):
        assert socket_path() == DEFAULT_SOCKET_PATH

    def test_config_beats_default(self, tmp_path):
        reload_config(_write(tmp_path, {"socket": {"path": "/run/cfg.sock"}}))
        assert socket_path() == "/run/cfg.sock"

    def test_environment_beats_config(self, tmp_path, monkeypatch):
        reload_config(_write(tmp_path, {"socket": {"path": "/run/cfg.sock"}}))
        monkeypatch.setenv(config.SOCKET_ENV, "/run/env.sock")
        assert socket_path() == "/run/env.sock"

    def test_flag_beats_everything(self, monkeypatch):
        monkeypatch.setenv(config.SOCKET_ENV, "/run/env.sock")
        assert socket_path("/run/flag.sock") == "/run/flag.sock"


def test_scalar_section_is_ignored_with_a_warning(tmp_path, caplog):
    data = {"status": 8080, "registry": "mpris", "poll": {"interval": 0.5}}
    with caplog.at_level(logging.WARNING, logger="mprisctl.lib.config"):
        loaded = reload_config(_write(tmp_path, data))
    assert loaded["status"] == {} and loaded["registry"] == {}
    assert "section 'status' must be an object" in caplog.text
    assert "section 'registry' must be an object" in caplog.text
    assert cfg("status", "port") is None
    assert cfg("registry", "type", default="mpris") == "mpris"
    assert cfg("poll", "interval") == 0.5


def test_unknown_log_level_is_reported(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="mprisctl.lib.config"):
        reload_config(_write(tmp_path, {"log": {"level": "loud"}}))
    assert "unknown log.level 'loud'" in caplog.text
