"""Tests for environment-driven settings."""

from decimal import Decimal

import pytest

from marketplace.domain.exceptions import ConfigurationError
from marketplace.infrastructure.config import Settings
from marketplace.infrastructure.logging import get_log_level


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.database_url.startswith("sqlite:///")
        assert settings.total_tolerance == Decimal("0.01")
        assert settings.gateway_timeout == 10.0
        assert settings.environment == "development"

    def test_reads_prefixed_variables(self):
        settings = Settings.from_env(
            {
                "MARKETPLACE_DATABASE_URL": "postgresql://db/marketplace",
                "MARKETPLACE_PAYSOLUTIONS_API_URL": "https://api.example.test/",
                "MARKETPLACE_PAYSOLUTIONS_SECRET_KEY": "s3cret",
                "MARKETPLACE_TOTAL_TOLERANCE": "0.05",
                "MARKETPLACE_GATEWAY_TIMEOUT": "2.5",
                "MARKETPLACE_ENVIRONMENT": "Production",
            }
        )
        assert settings.database_url == "postgresql://db/marketplace"
        assert settings.paysolutions_api_url == "https://api.example.test"
        assert settings.paysolutions_secret_key == "s3cret"
        assert settings.total_tolerance == Decimal("0.05")
        assert settings.gateway_timeout == 2.5
        assert settings.environment == "production"

    @pytest.mark.parametrize("link, name", [("shop", "shop"), ("https://pay.example.test/link/shop/", "shop")])
    def test_payment_link_name(self, link, name):
        assert Settings(paysolutions_payment_link=link).payment_link_name == name

    def test_bad_timeout(self):
        with pytest.raises(ConfigurationError, match="GATEWAY_TIMEOUT must be a number"):
            Settings.from_env({"MARKETPLACE_GATEWAY_TIMEOUT": "soon"})

    def test_negative_tolerance(self):
        with pytest.raises(ConfigurationError, match="cannot be negative"):
            Settings.from_env({"MARKETPLACE_TOTAL_TOLERANCE": "-1"})


class TestLogLevel:

    def test_by_environment(self):
        assert get_log_level(Settings(environment="production")) == "INFO"
        assert get_log_level(Settings(environment="development")) == "DEBUG"

    def test_explicit_level_wins(self):
        assert get_log_level(Settings(environment="production", log_level="warning")) == "WARNING"
