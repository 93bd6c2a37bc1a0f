from __future__ import annotations

from decimal import Decimal

import pytest

from storefront_fx.providers.mock import SEED_RATES
from storefront_fx.services.currency_registry import CurrencyRegistry
from storefront_fx.services.exchange_rates import SEED_SOURCE, ExchangeRateService, get_service
from storefront_fx.services.freshness import FreshnessEvaluator
from storefront_fx.services.fx_conversion import PricedItem, RateNotFound
from storefront_fx.services.synchronizer import RateSynchronizer
from tests.fakes import FakeRepository, StaticProvider


@pytest.fixture()
def fx_service():
    currencies = CurrencyRegistry("USD", ("IDR", "EUR", "MYR", "SGD", "HKD", "AED"))
    repository = FakeRepository()
    return ExchangeRateService(
        repository=repository,
        synchronizer=RateSynchronizer(StaticProvider(SEED_RATES), repository, "USD", currencies.basket),
        freshness=FreshnessEvaluator(repository, "USD", currencies.basket),
        currencies=currencies,
    )


def test_seed_initial_rates_writes_pairs_both_ways(fx_service):
    assert fx_service.seed_initial_rates() == 12

    forward = fx_service.repository.get("USD", "EUR")
    inverse = fx_service.repository.get("EUR", "USD")
    assert forward.source == inverse.source == SEED_SOURCE
    assert forward.rate == Decimal("0.860704")
    assert abs(forward.rate * inverse.rate - 1) < Decimal("1e-20")
    assert fx_service.is_fresh() is True


def test_rates_for_display_lists_base_rows(fx_service):
    fx_service.refresh()

    display = fx_service.rates_for_display()

    assert display["base"] == "USD"
    assert display["rates"]["MYR"]["rate"] == SEED_RATES["MYR"]
    assert "USD" not in display["rates"]


def test_convert_and_round_uses_stored_table(fx_service):
    fx_service.refresh()

    assert fx_service.convert_and_round("1", "USD", "IDR") == Decimal("16605")
    assert fx_service.convert_and_round("9", "EUR", "USD") == Decimal("10.46")


def test_price_range_through_service(fx_service):
    fx_service.seed_initial_rates()

    result = fx_service.price_range(
        [PricedItem(Decimal("10"), "USD"), PricedItem(Decimal("9"), "EUR")], "USD"
    )

    assert (result.min, result.max) == (Decimal("10.00"), Decimal("10.46"))


def test_convert_without_rates_raises(fx_service):
    with pytest.raises(RateNotFound):
        fx_service.convert("1", "USD", "SGD")


def test_get_service_requires_initialization():
    from flask import Flask

    with pytest.raises(RuntimeError):
        get_service(Flask(__name__))


def test_seed_initial_rates_follow_a_non_usd_base():
    currencies = CurrencyRegistry("EUR", ("USD", "IDR"))
    repository = FakeRepository()
    service = ExchangeRateService(
        repository=repository,
        synchronizer=RateSynchronizer(StaticProvider({}), repository, "EUR", currencies.basket),
        freshness=FreshnessEvaluator(repository, "EUR", currencies.basket),
        currencies=currencies,
    )

    assert service.seed_initial_rates() == 4
    assert repository.get("EUR", "IDR").rate == SEED_RATES["IDR"] / SEED_RATES["EUR"]
    assert repository.get("EUR", "IDR").rate != SEED_RATES["IDR"]
    assert abs(repository.get("EUR", "USD").rate * SEED_RATES["EUR"] - 1) < Decimal("1e-20")
