"""Runtime configuration, read from ``MARKETPLACE_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from urllib.parse import urlparse

from marketplace.domain.exceptions import ConfigurationError

_PREFIX = "MARKETPLACE_"

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:
    database_url: str = f"sqlite:///{_DATA_DIR / 'marketplace.db'}"
    paysolutions_api_url: str = "https://api.paysolutions.asia"
    paysolutions_payment_url: str = "https://payments.paysolutions.asia/payment"
    paysolutions_merchant_id: str = ""
    paysolutions_api_key: str = ""
    paysolutions_payment_link: str = ""
    paysolutions_secret_key: str = ""
    return_url: str = "http://localhost:5173/payment/return"
    callback_url: str = "http://localhost:8000/api/payment/callback"
    gateway_timeout: float = 10.0
    total_tolerance: Decimal = Decimal("0.01")
    environment: str = "development"
    log_level: str | None = None

    @property
    def payment_link_name(self) -> str:
        """The provider's link name; accepts a bare name or a full link URL."""
        link = self.paysolutions_payment_link
        if "://" in link:
            return urlparse(link).path.rstrip("/").rsplit("/", 1)[-1]
        return link

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(_PREFIX + name, default)

        defaults = Settings()
        return Settings(
            database_url=get("DATABASE_URL", defaults.database_url),
            paysolutions_api_url=get("PAYSOLUTIONS_API_URL", defaults.paysolutions_api_url).rstrip("/"),
            paysolutions_payment_url=get("PAYSOLUTIONS_PAYMENT_URL", defaults.paysolutions_payment_url),
            paysolutions_merchant_id=get("PAYSOLUTIONS_MERCHANT_ID", ""),
            paysolutions_api_key=get("PAYSOLUTIONS_API_KEY", ""),
            paysolutions_payment_link=get("PAYSOLUTIONS_PAYMENT_LINK", ""),
            paysolutions_secret_key=get("PAYSOLUTIONS_SECRET_KEY", ""),
            return_url=get("RETURN_URL", defaults.return_url),
            callback_url=get("CALLBACK_URL", defaults.callback_url),
            gateway_timeout=_parse_float("GATEWAY_TIMEOUT", get("GATEWAY_TIMEOUT", "10")),
            total_tolerance=_parse_decimal("TOTAL_TOLERANCE", get("TOTAL_TOLERANCE", "0.01")),
            environment=get("ENVIRONMENT", defaults.environment).lower(),
            log_level=env.get(_PREFIX + "LOG_LEVEL") or None,
        )


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{_PREFIX}{name} must be positive, got {raw!r}")
    return value


def _parse_decimal(name: str, raw: str) -> Decimal:
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ConfigurationError(f"{_PREFIX}{name} must be a decimal, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{_PREFIX}{name} cannot be negative, got {raw!r}")
    return value
