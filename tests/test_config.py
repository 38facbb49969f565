import json

import pytest

from mosdns.config import APIConfig, Config, PluginConfig, load_config
from mosdns.mlog import LogConfig


def test_from_dict_full_document():
    data = {
        "log": {"level": "debug", "file": "a.log", "production": "true"},
        "include": ["sub.yaml"],
        "plugins": [{"tag": "fwd", "type": "forward", "args": {"upstream": ["1.1.1.1"]}}],
        "api": {"http": "127.0.0.1:8080"},
    }
    cfg = Config.from_dict(data)
    assert cfg.log == LogConfig(level="debug", file="a.log", production=True)
    assert cfg.include == ["sub.yaml"]
    assert cfg.plugins == [PluginConfig(tag="fwd", type="forward", args={"upstream": ["1.1.1.1"]})]
    assert cfg.api == APIConfig(http="127.0.0.1:8080")


def test_from_dict_none_gives_defaults():
    assert Config.from_dict(None) == Config()


def test_weak_single_value_becomes_list():
    cfg = Config.from_dict({"include": "one.yaml"})
    assert cfg.include == ["one.yaml"]


def test_weak_int_to_bool():
    cfg = Config.from_dict({"log": {"production": 1}})
    assert cfg.log.production is True


def test_keys_are_case_insensitive():
    cfg = Config.from_dict({"LOG": {"Level": "warn"}})
    assert cfg.log.level == "warn"


def test_unknown_top_level_key_raises():
    with pytest.raises(ValueError, match="bogus"):
        Config.from_dict({"bogus": 1})


def test_unknown_nested_key_raises():
    with pytest.raises(ValueError, match="colour"):
        Config.from_dict({"log": {"colour": "red"}})


def test_invalid_bool_raises():
    with pytest.raises(ValueError):
        Config.from_dict({"log": {"production": "maybe"}})


def test_load_config_explicit_yaml(tmp_path):
    path = tmp_path / "main.yaml"
    path.write_text("log:\n  level: error\nplugins:\n  - type: cache\n")
    cfg, used = load_config(str(path))
    assert used == str(path)
    assert cfg.log.level == "error"
    assert cfg.plugins == [PluginConfig(type="cache")]


def test_load_config_json(tmp_path):
    path = tmp_path / "main.json"
    path.write_text(json.dumps({"api": {"http": ":9091"}}))
    cfg, _ = load_config(str(path))
    assert cfg.api.http == ":9091"


def test_load_config_searches_current_dir(tmp_path, monkeypatch):
    (tmp_path / "config.yaml").write_text("include: []\n")
    monkeypatch.chdir(tmp_path)
    cfg, used = load_config("")
    assert used == "config.yaml"
    assert cfg == Config()


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")
    cfg, _ = load_config(str(path))
    assert cfg == Config()


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


def test_load_config_search_finds_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        load_config("")


def test_load_config_unsupported_extension(tmp_path):
    path = tmp_path / "main.txt"
    path.write_text("log: {}")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_load_config_unknown_key_in_file(tmp_path):
    path = tmp_path / "main.yaml"
    path.write_text("unknown_section: 1\n")
    with pytest.raises(ValueError, match="failed to unmarshal config"):
        load_config(str(path))