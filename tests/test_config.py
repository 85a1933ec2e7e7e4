"""Unit tests for config load/save and endpoint (de)serialization (core.config)."""
import json

import pytest
from core import config
from core.endpoints import Endpoint


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "get_config_dir", lambda: tmp_path)
    return tmp_path


def test_missing_file_gives_defaults(config_dir):
    c = config.load_config()
    assert c == config.get_default_config()
    assert c["interval_s"] == 10
    assert c["timeout_ms"] == 3000
    assert c["max_concurrency"] == 0


def test_corrupt_file_gives_defaults(config_dir):
    (config_dir / "config.json").write_text("{not json", encoding="utf-8")
    assert config.load_config() == config.get_default_config()


def test_non_object_file_gives_defaults(config_dir):
    (config_dir / "config.json").write_text("[1, 2]", encoding="utf-8")
    assert config.load_config() == config.get_default_config()


@pytest.mark.parametrize("raw", [
    {"interval_s": None},
    {"interval_s": "fast"},
    {"timeout_ms": None},
    {"max_concurrency": "lots"},
    {"interval_s": True},
])
def test_bad_setting_values_fall_back(config_dir, raw):
    (config_dir / "config.json").write_text(json.dumps(raw), encoding="utf-8")
    c = config.load_config()
    assert config.interval_from(c) == 10.0
    assert config.timeout_from(c) == 3000
    assert config.max_concurrency_from(c) == 0


@pytest.mark.parametrize("value", [None, {"name": "x"}, "abc", 3])
def test_bad_endpoint_list_loads_nothing(config_dir, value):
    (config_dir / "config.json").write_text(json.dumps({"endpoints": value}), encoding="utf-8")
    assert config.load_endpoints(config.load_config()) == []


def test_bad_flags_fall_back():
    c = {"notifications_enabled": "maybe", "close_to_tray": None, "run_at_startup": "true"}
    assert config.flag_from(c, "notifications_enabled", True) is True
    assert config.flag_from(c, "close_to_tray", False) is False
    assert config.flag_from(c, "run_at_startup", False) is True
    assert config.log_dir_from({"log_path": None}) is None


def test_missing_keys_are_merged(config_dir):
    (config_dir / "config.json").write_text(json.dumps({"interval_s": 30}), encoding="utf-8")
    c = config.load_config()
    assert c["interval_s"] == 30
    assert c["endpoints"] == []
    assert c["close_to_tray"] is True


def test_save_and_reload_endpoints_keep_state(config_dir):
    c = config.get_default_config()
    config.store_endpoints(c, [
        Endpoint("Lobby", "127.0.0.1", 25565, online=True, first_check=False),
        Endpoint("New", "mc.example.org", 25566),
    ])
    config.save_config(c)

    loaded = config.load_endpoints(config.load_config())
    assert [(e.name, e.host, e.port, e.online, e.first_check) for e in loaded] == [
        ("Lobby", "127.0.0.1", 25565, True, False),
        ("New", "mc.example.org", 25566, False, True),
    ]


def test_invalid_endpoints_are_skipped():
    c = {"endpoints": [
        {"name": "ok", "host": "127.0.0.1", "port": 80},
        {"name": "", "host": "127.0.0.1", "port": 80},
        {"name": "bad port", "host": "127.0.0.1", "port": 70000},
        "garbage",
    ]}
    assert [e.name for e in config.load_endpoints(c)] == ["ok"]


def test_entry_without_state_is_first_check():
    ep = config.dict_to_endpoint({"name": "x", "host": "h", "port": 1})
    assert ep.first_check is True
    assert ep.online is False


def test_setting_clamps():
    assert config.interval_from({"interval_s": 0}) == 1.0
    assert config.timeout_from({"timeout_ms": 5}) == 100
    assert config.max_concurrency_from({"max_concurrency": -3}) == 0
    assert config.log_dir_from({"log_path": ""}) is None


def test_endpoint_flags_parse_strictly():
    ep = config.dict_to_endpoint({"name": "x", "host": "h", "port": 1, "online": "false", "first_check": "False"})
    assert ep.online is False
    assert ep.first_check is False


@pytest.mark.parametrize("entry", [
    {"name": "x", "host": "h", "port": 80.7},
    {"name": "x", "host": "h", "port": 1, "online": "yes"},
    {"name": "x", "host": "h", "port": 1, "first_check": 0},
])
def test_endpoint_with_bad_field_is_skipped(entry):
    assert config.load_endpoints({"endpoints": [entry]}) == []
