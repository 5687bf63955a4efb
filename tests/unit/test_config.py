"""
Unit tests for configuration and logging setup.
"""

import logging

import pytest

from listenkit import ConfigError, ExtendConfig, FieldNames, setup_logging


class TestExtendConfig:
    """Tests for ExtendConfig."""

    def test_defaults(self):
        """Test default values."""
        config = ExtendConfig()

        assert config.enable_cors is False
        assert config.field_names() == FieldNames("data", "errno", "errmsg")
        assert config.gzip_level == 6
        assert config.strict_gzip_requests is False
        config.validate()

    def test_from_env(self, monkeypatch):
        """Test reading every variable."""
        monkeypatch.setenv("LISTENKIT_CORS", "yes")
        monkeypatch.setenv("LISTENKIT_DATA_FIELD", "result")
        monkeypatch.setenv("LISTENKIT_CODE_FIELD", "code")
        monkeypatch.setenv("LISTENKIT_MESSAGE_FIELD", "msg")
        monkeypatch.setenv("LISTENKIT_GZIP_LEVEL", "9")
        monkeypatch.setenv("LISTENKIT_STRICT_GZIP", "1")
        monkeypatch.setenv("LISTENKIT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LISTENKIT_LOG_FORMAT", "json")

        config = ExtendConfig.from_env()

        assert config.enable_cors is True
        assert config.field_names() == FieldNames("result", "code", "msg")
        assert config.gzip_level == 9
        assert config.strict_gzip_requests is True
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        config.validate()

    def test_from_env_defaults(self, monkeypatch):
        """Test that unset variables keep the defaults."""
        for name in ("LISTENKIT_CORS", "LISTENKIT_DATA_FIELD", "LISTENKIT_GZIP_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        config = ExtendConfig.from_env()

        assert config.enable_cors is False
        assert config.data_field == "data"
        assert config.gzip_level == 6

    def test_from_env_false_flag(self, monkeypatch):
        """Test that unknown flag values are false."""
        monkeypatch.setenv("LISTENKIT_CORS", "nope")
        assert ExtendConfig.from_env().enable_cors is False

    def test_from_env_bad_level(self, monkeypatch):
        """Test that a non-integer gzip level is rejected."""
        monkeypatch.setenv("LISTENKIT_GZIP_LEVEL", "max")

        with pytest.raises(ConfigError):
            ExtendConfig.from_env()

    @pytest.mark.parametrize("kwargs", [
        {"gzip_level": 10},
        {"gzip_level": -1},
        {"log_level": "LOUD"},
        {"log_format": "xml"},
        {"data_field": ""},
        {"message_field": "errno"},
    ])
    def test_validate_rejects(self, kwargs):
        """Test invalid values."""
        with pytest.raises(ConfigError):
            ExtendConfig(**kwargs).validate()

    def test_config_error_is_value_error(self):
        """Test that ConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            ExtendConfig(gzip_level=42).validate()


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_sets_package_level(self):
        """Test that the listenkit logger gets the requested level."""
        package_logger = logging.getLogger("listenkit")
        previous = package_logger.level
        try:
            setup_logging("DEBUG")
            assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)

    def test_unknown_level_falls_back(self):
        """Test that an unknown level name means INFO."""
        package_logger = logging.getLogger("listenkit")
        previous = package_logger.level
        try:
            setup_logging("chatty")
            assert package_logger.level == logging.INFO
        finally:
            package_logger.setLevel(previous)
