"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_RATE_PROVIDERS = {"exchange", "exchangerate_host", "mock"}
PROVIDER_ALIASES = {"exchangerate_host": "exchange"}

DEFAULT_BASE_CURRENCY = "USD"
DEFAULT_SUPPORTED_CURRENCIES = "IDR,EUR,MYR,SGD,HKD,AED"
DEFAULT_REFRESH_TIMES = "00:00,08:00,16:00"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _split_codes(raw: str) -> tuple[str, ...]:
    codes: list[str] = []
    for item in raw.split(","):
        code = item.strip().upper()
        if code and code not in codes:
            codes.append(code)
    return tuple(codes)


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "storefront-fx"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = _get_env("DATABASE_URL", "sqlite:///storefront-fx.db")

    FX_BASE_CURRENCY = _get_env("FX_BASE_CURRENCY", DEFAULT_BASE_CURRENCY).strip().upper()
    FX_SUPPORTED_CURRENCIES = _split_codes(
        _get_env("FX_SUPPORTED_CURRENCIES", DEFAULT_SUPPORTED_CURRENCIES)
    )
    FX_RATE_PROVIDER = _get_env("FX_RATE_PROVIDER", "exchange")
    RATES_API_BASE_URL = _get_env("RATES_API_BASE_URL", "https://api.exchangerate.host")
    EXCHANGERATE_API_KEY = _get_env("EXCHANGERATE_API_KEY", "")
    REQUEST_TIMEOUT_SECONDS = float(_get_env("REQUEST_TIMEOUT_SECONDS", "10"))
    RATES_FRESHNESS_TTL_HOURS = float(_get_env("RATES_FRESHNESS_TTL_HOURS", "8"))

    SCHEDULER_ENABLED = _get_env("SCHEDULER_ENABLED", "true").lower() == "true"
    SCHEDULER_TIMEZONE = _get_env("SCHEDULER_TIMEZONE", "UTC")
    RATES_REFRESH_TIMES = _get_env("RATES_REFRESH_TIMES", DEFAULT_REFRESH_TIMES)
    RATES_INITIAL_CHECK_ENABLED = (
        _get_env("RATES_INITIAL_CHECK_ENABLED", "true").lower() == "true"
    )

    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration used by the test-suite; no background jobs or network."""

    DEBUG = False
    TESTING = True
    FX_RATE_PROVIDER = "mock"
    SCHEDULER_ENABLED = False
    RATES_INITIAL_CHECK_ENABLED = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If the provider or currency settings are invalid.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_provider(config_cls)
    _validate_currencies(config_cls)
    return config_cls


def _validate_provider(config_cls: type[BaseConfig]) -> None:
    normalized = _normalize_provider(config_cls.FX_RATE_PROVIDER)
    if normalized not in SUPPORTED_RATE_PROVIDERS:
        raise ValueError(
            f"Unsupported FX_RATE_PROVIDER '{config_cls.FX_RATE_PROVIDER}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_PROVIDERS)}"
        )
    config_cls.FX_RATE_PROVIDER = normalized


def _validate_currencies(config_cls: type[BaseConfig]) -> None:
    from storefront_fx.services.currency_registry import CURRENCY_DEFINITIONS

    base = config_cls.FX_BASE_CURRENCY
    if base not in CURRENCY_DEFINITIONS:
        raise ValueError(f"FX_BASE_CURRENCY '{base}' has no currency definition.")

    basket = tuple(code for code in config_cls.FX_SUPPORTED_CURRENCIES if code != base)
    if not basket:
        raise ValueError("FX_SUPPORTED_CURRENCIES must name at least one non-base currency.")
    config_cls.FX_SUPPORTED_CURRENCIES = basket


def _normalize_provider(value: str | None) -> str:
    if not value:
        return ""
    normalized = value.lower()
    return PROVIDER_ALIASES.get(normalized, normalized)
