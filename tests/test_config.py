from __future__ import annotations

import pytest

from config import TestingConfig, get_config


def test_get_config_returns_testing_config():
    config = get_config("testing")

    assert config is TestingConfig
    assert config.FX_RATE_PROVIDER == "mock"
    assert config.SCHEDULER_ENABLED is False
    assert config.RATES_FRESHNESS_TTL_HOURS == 8


def test_unknown_environment_raises():
    with pytest.raises(KeyError):
        get_config("staging")


def test_invalid_provider_is_rejected(monkeypatch):
    monkeypatch.setattr(TestingConfig, "FX_RATE_PROVIDER", "frankfurter")

    with pytest.raises(ValueError, match="Unsupported FX_RATE_PROVIDER"):
        get_config("testing")


def test_provider_alias_is_normalized(monkeypatch):
    monkeypatch.setattr(TestingConfig, "FX_RATE_PROVIDER", "exchangerate_host")

    assert get_config("testing").FX_RATE_PROVIDER == "exchange"


def test_base_currency_must_be_defined(monkeypatch):
    monkeypatch.setattr(TestingConfig, "FX_BASE_CURRENCY", "XYZ")

    with pytest.raises(ValueError, match="FX_BASE_CURRENCY"):
        get_config("testing")


def test_base_is_removed_from_basket(monkeypatch):
    monkeypatch.setattr(TestingConfig, "FX_SUPPORTED_CURRENCIES", ("USD", "EUR"))

    assert get_config("testing").FX_SUPPORTED_CURRENCIES == ("EUR",)


def test_basket_must_not_be_empty(monkeypatch):
    monkeypatch.setattr(TestingConfig, "FX_SUPPORTED_CURRENCIES", ("USD",))

    with pytest.raises(ValueError, match="FX_SUPPORTED_CURRENCIES"):
        get_config("testing")
