"""
Тесты загрузки конфигурации движка.
"""

import textwrap
from pathlib import Path

import pytest

from uel import ConfigError, EngineConfig, UnifiedEngine, config_from_env, load_config
from uel.config import DEFAULT_CACHE_SIZE


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text).strip() + "\n", encoding="utf-8")
    return path


class TestEngineConfig:

    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.strict is True
        assert cfg.lenient is False
        assert cfg.silent is False
        assert cfg.cache_size == DEFAULT_CACHE_SIZE

    def test_from_dict(self):
        cfg = EngineConfig.from_dict({"strict": "no", "silent": True, "cache_size": "16"})
        assert cfg == EngineConfig(strict=False, silent=True, cache_size=16)

    def test_lenient_alias(self):
        assert EngineConfig.from_dict({"lenient": True}).strict is False

    def test_empty(self):
        assert EngineConfig.from_dict(None) == EngineConfig()
        assert EngineConfig.from_dict({}) == EngineConfig()

    def test_unknown_keys(self):
        with pytest.raises(ConfigError, match="unknown engine config keys: colour"):
            EngineConfig.from_dict({"colour": "blue"})

    def test_invalid_values(self):
        with pytest.raises(ConfigError, match="strict"):
            EngineConfig.from_dict({"strict": "maybe"})
        with pytest.raises(ConfigError, match="cache_size"):
            EngineConfig.from_dict({"cache_size": "lots"})
        with pytest.raises(ConfigError, match="cache_size"):
            EngineConfig.from_dict({"cache_size": True})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            EngineConfig.from_dict(["strict"])


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == EngineConfig()

    def test_yaml_engine_section(self, tmp_path):
        path = write(tmp_path / "uel.yaml", """
        engine:
          strict: false
          silent: true
          cache_size: 8
        """)

        assert load_config(path) == EngineConfig(strict=False, silent=True, cache_size=8)

    def test_yaml_must_be_mapping(self, tmp_path):
        path = write(tmp_path / "uel.yaml", "- a\n- b")
        with pytest.raises(ConfigError, match="YAML must be a mapping"):
            load_config(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write(tmp_path / "uel.yaml", """
        engine:
          cache_size: 8
        """)
        monkeypatch.setenv("UEL_CACHE_SIZE", "0")
        monkeypatch.setenv("UEL_SILENT", "on")

        cfg = load_config(path)
        assert cfg.cache_size == 0
        assert cfg.silent is True

        assert load_config(path, use_env=False).cache_size == 8

    def test_config_from_env_explicit_mapping(self):
        cfg = config_from_env(EngineConfig(), {"UEL_STRICT": "false"})
        assert cfg.strict is False

    def test_engine_from_loaded_config(self, tmp_path):
        path = write(tmp_path / "uel.yaml", """
        engine:
          lenient: true
        """)
        engine = UnifiedEngine(load_config(path))
        assert engine.evaluate("${missing}", {}) is None
