"""
Unit Tests for Configuration
============================

Copyright (c) 2025-2026 Machscope Contributors
"""

import logging

import pytest

from machscope.config import DisasmConfig, get_default_config, set_default_config


@pytest.fixture(autouse=True)
def reset_default_config():
    set_default_config(None)
    yield
    set_default_config(None)


class TestDisasmConfig:
    """Tests for defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        for name in ("MACHSCOPE_COUNT", "MACHSCOPE_STRING_LIMIT", "MACHSCOPE_LOG_LEVEL", "MACHSCOPE_FORMAT"):
            monkeypatch.delenv(name, raising=False)
        config = DisasmConfig.from_env()
        assert config.default_count == 100
        assert config.string_limit == 1024
        assert config.log_level == "WARNING"
        assert config.output_format == "text"
        assert config.logging_level == logging.WARNING

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("MACHSCOPE_COUNT", "25")
        monkeypatch.setenv("MACHSCOPE_STRING_LIMIT", "64")
        monkeypatch.setenv("MACHSCOPE_LOG_LEVEL", "debug")
        monkeypatch.setenv("MACHSCOPE_FORMAT", "json")
        config = DisasmConfig.from_env()
        assert config.default_count == 25
        assert config.string_limit == 64
        assert config.log_level == "DEBUG"
        assert config.output_format == "json"

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("MACHSCOPE_COUNT", "many")
        monkeypatch.setenv("MACHSCOPE_STRING_LIMIT", "-1")
        monkeypatch.setenv("MACHSCOPE_LOG_LEVEL", "LOUD")
        monkeypatch.setenv("MACHSCOPE_FORMAT", "xml")
        config = DisasmConfig.from_env()
        assert config.default_count == 100
        assert config.string_limit == 1024
        assert config.log_level == "WARNING"
        assert config.output_format == "text"

    def test_default_instance(self, monkeypatch):
        monkeypatch.setenv("MACHSCOPE_COUNT", "7")
        assert get_default_config().default_count == 7
        assert get_default_config() is get_default_config()

        custom = DisasmConfig(default_count=3)
        set_default_config(custom)
        assert get_default_config() is custom
