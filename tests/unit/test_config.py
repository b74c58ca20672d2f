"""
Tests for OperatorConfig.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from appstack_operator.config import (
    DEFAULT_TEMPLATE_PATH,
    OperatorConfig,
    get_config,
)


class TestOperatorConfig:
    """Test configuration handling."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        with patch.dict(os.environ, {}, clear=True):
            config = OperatorConfig()

        assert config.default_provider_config_name == "default"
        assert config.resource_tags == {"created_by": "appstack_operator"}
        assert config.master_username == "postgres"
        assert config.password_length == 26
        assert config.ingress_scheme == "internal"
        assert config.certificate_arn == ""
        assert config.steady_state_interval == 300
        assert config.changelog_path == Path("config/liquibase/changelog.yml")
        assert config.template_path == DEFAULT_TEMPLATE_PATH

    def test_packaged_template_exists(self) -> None:
        """Test the default template ships with the package."""
        assert DEFAULT_TEMPLATE_PATH.is_file()

    def test_env_variables(self) -> None:
        """Test configuration from environment variables."""
        with patch.dict(
            os.environ,
            {
                "APPSTACK_CERTIFICATE_ARN": "arn:aws:acm:cert",
                "APPSTACK_RESOURCE_TAGS": '{"team": "platform"}',
                "APPSTACK_STEADY_STATE_INTERVAL": "120",
            },
        ):
            get_config.cache_clear()
            config = get_config()

            assert config.certificate_arn == "arn:aws:acm:cert"
            assert config.resource_tags == {"team": "platform"}
            assert config.steady_state_interval == 120

    def test_get_config_is_cached(self) -> None:
        """Test repeated calls share one instance."""
        assert get_config() is get_config()

    def test_password_length_validation(self) -> None:
        """Test generated password length bounds."""
        with pytest.raises(ValidationError):
            OperatorConfig(password_length=8)

        with pytest.raises(ValidationError):
            OperatorConfig(password_length=200)

    def test_steady_state_interval_validation(self) -> None:
        """Test the steady-state interval has a floor."""
        with pytest.raises(ValidationError):
            OperatorConfig(steady_state_interval=1)
