"""Tests for the config module."""

import os

import pytest

from accesslog.config import ENV_PREFIX, Config, ConfigError, load_config, load_yaml_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)


class TestConfigDefaults:
    def test_defaults(self):
        cfg = Config()
        assert cfg.response_codes_path is None
        assert cfg.ip_mapping_path is None
        assert cfg.response_codes_delimiter == ","
        assert cfg.ip_mapping_delimiter == "\t"
        assert cfg.top_n == 10
        assert cfg.frequent_ip_threshold == 10
        assert cfg.max_malformed_samples == 5
        assert cfg.log_level == "INFO"

    def test_frozen(self):
        cfg = Config()
        with pytest.raises(AttributeError):
            cfg.top_n = 5


class TestLoadYamlConfig:
    def test_no_path(self):
        assert load_yaml_config(None) == {}

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_yaml_config(str(tmp_path / "missing.yml")) == {}

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("top_n: [unclosed\n")
        with pytest.raises(ConfigError):
            load_yaml_config(str(path))

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_yaml_config(str(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_yaml_config(str(path)) == {}


class TestLoadConfig:
    def test_defaults(self):
        assert load_config() == Config()

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "response_codes_path: data/codes.csv\n"
            "top_n: 3\n"
            'ip_mapping_delimiter: "|"\n'
            "log_level: debug\n"
        )
        cfg = load_config(str(path))
        assert cfg.response_codes_path == "data/codes.csv"
        assert cfg.top_n == 3
        assert cfg.ip_mapping_delimiter == "|"
        assert cfg.log_level == "DEBUG"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yml"
        path.write_text("top_n: 3\n")
        monkeypatch.setenv("ACCESSLOG_TOP_N", "7")
        assert load_config(str(path)).top_n == 7

    def test_env_only(self, monkeypatch):
        monkeypatch.setenv("ACCESSLOG_OUTPUT_DIR", "/tmp/out")
        monkeypatch.setenv("ACCESSLOG_FREQUENT_IP_THRESHOLD", "25")
        cfg = load_config()
        assert cfg.output_dir == "/tmp/out"
        assert cfg.frequent_ip_threshold == 25

    def test_invalid_int_raises(self, monkeypatch):
        monkeypatch.setenv("ACCESSLOG_TOP_N", "many")
        with pytest.raises(ConfigError):
            load_config()

    def test_negative_int_raises(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("max_malformed_samples: -1\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_invalid_log_level_raises(self, monkeypatch):
        monkeypatch.setenv("ACCESSLOG_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigError):
            load_config()

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("colour: blue\ntop_n: 4\n")
        assert load_config(str(path)).top_n == 4
