"""Tests for agentperm.config module."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from agentperm import (
    EnforcementMode,
    EvaluationMode,
    LogLevel,
    PermissionConfig,
    load_config_from_env,
)


class TestPermissionConfig:
    """Tests for PermissionConfig model."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = PermissionConfig()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.evaluation_mode == EvaluationMode.SEQUENTIAL
        assert config.enforcement == EnforcementMode.ENFORCE
        assert config.service_name is None

    def test_log_level_from_string(self) -> None:
        """Test log level string conversion."""
        assert PermissionConfig(log_level="debug").log_level == LogLevel.DEBUG
        assert PermissionConfig(log_level=" Warning ").log_level == LogLevel.WARNING

    def test_log_level_enum(self) -> None:
        config = PermissionConfig(log_level=LogLevel.ERROR)
        assert config.log_level == LogLevel.ERROR

    def test_invalid_log_level(self) -> None:
        """Test that invalid log level raises error."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            PermissionConfig(log_level="LOUD")

    def test_modes_are_case_insensitive(self) -> None:
        config = PermissionConfig(evaluation_mode="CONCURRENT", enforcement="Warn")
        assert config.evaluation_mode == EvaluationMode.CONCURRENT
        assert config.enforcement == EnforcementMode.WARN

    def test_invalid_evaluation_mode(self) -> None:
        with pytest.raises(ValidationError):
            PermissionConfig(evaluation_mode="parallel")

    def test_extra_fields_forbidden(self) -> None:
        """Test that unknown fields are rejected."""
        with pytest.raises(ValidationError):
            PermissionConfig(redis_url="redis://localhost")


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.evaluation_mode == EvaluationMode.SEQUENTIAL
        assert config.enforcement == EnforcementMode.ENFORCE

    def test_from_environment(self) -> None:
        env = {
            "LOG_LEVEL": "DEBUG",
            "LOG_JSON": "yes",
            "PERMISSION_EVALUATION_MODE": "concurrent",
            "SECURITY_ENFORCEMENT": "warn",
            "SERVICE_NAME": "posts",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
        assert config.log_level == LogLevel.DEBUG
        assert config.log_json is True
        assert config.evaluation_mode == EvaluationMode.CONCURRENT
        assert config.enforcement == EnforcementMode.WARN
        assert config.service_name == "posts"

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", ""])
    def test_log_json_falsy(self, value) -> None:
        with patch.dict(os.environ, {"LOG_JSON": value}, clear=True):
            assert load_config_from_env().log_json is False

    def test_invalid_log_level_from_env(self) -> None:
        with patch.dict(os.environ, {"LOG_LEVEL": "chatty"}, clear=True):
            with pytest.raises(ValidationError):
                load_config_from_env()


class TestEnforcementMode:
    """Tests for EnforcementMode.from_env()."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("off", EnforcementMode.OFF),
            ("WARN", EnforcementMode.WARN),
            (" enforce ", EnforcementMode.ENFORCE),
        ],
    )
    def test_known_values(self, value, expected) -> None:
        with patch.dict(os.environ, {"SECURITY_ENFORCEMENT": value}):
            assert EnforcementMode.from_env() == expected

    def test_unset_defaults_to_enforce(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            assert EnforcementMode.from_env() == EnforcementMode.ENFORCE

    def test_unknown_value_defaults_to_enforce(self, caplog) -> None:
        with patch.dict(os.environ, {"SECURITY_ENFORCEMENT": "strict"}):
            with caplog.at_level("WARNING", logger="agentperm.config"):
                assert EnforcementMode.from_env() == EnforcementMode.ENFORCE
        assert any("Unknown SECURITY_ENFORCEMENT" in r.getMessage() for r in caplog.records)
