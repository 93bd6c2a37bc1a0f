from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from storefront_fx.providers import ProviderUnavailable
from storefront_fx.providers.mock import SEED_RATES
from storefront_fx.services.rate_store import StorageFailure
from storefront_fx.services.synchronizer import RateSynchronizer
from tests.fakes import BlockingProvider, FailingProvider, FakeRepository, StaticProvider


def _swap_synchronizer(monkeypatch, service, provider, repository=None) -> RateSynchronizer:
    synchronizer = RateSynchronizer(
        provider=provider,
        repository=repository if repository is not None else service.repository,
        base_currency=service.base_currency,
        basket=service.basket,
    )
    monkeypatch.setattr(service, "synchronizer", synchronizer)
    return synchronizer


def test_list_rates_returns_base_table(client, seeded):
    response = client.get("/rates")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["base"] == "USD"
    assert set(payload["rates"]) == {"IDR", "EUR", "MYR", "SGD", "HKD", "AED"}
    assert Decimal(payload["rates"]["IDR"]["rate"]) == Decimal("16604.6")
    assert payload["rates"]["IDR"]["last_updated"]
    assert payload["timestamp"]


def test_list_rates_is_empty_without_data(client, clean_rates):
    payload = client.get("/rates").get_json()

    assert payload["rates"] == {}


def test_freshness_endpoint(client, service, clean_rates):
    assert client.get("/rates/fresh").get_json()["is_fresh"] is False

    service.seed_initial_rates()

    assert client.get("/rates/fresh").get_json()["is_fresh"] is True


def test_convert_from_base(client, seeded):
    response = client.post(
        "/rates/convert", json={"amount": 10, "from_currency": "usd", "to_currency": "IDR"}
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["from_currency"] == "USD"
    assert payload["to_currency"] == "IDR"
    assert payload["converted_amount"] == "166046"
    assert payload["formatted"] == "Rp 166,046"


def test_convert_to_base_rounds_half_up(client, seeded):
    response = client.post(
        "/rates/convert", json={"amount": "100", "from_currency": "EUR", "to_currency": "USD"}
    )

    payload = response.get_json()
    assert payload["converted_amount"] == "116.18"
    assert payload["formatted"] == "$ 116.18"


def test_convert_identity_needs_no_rates(client, clean_rates):
    response = client.post(
        "/rates/convert", json={"amount": "19.999", "from_currency": "EUR", "to_currency": "EUR"}
    )

    assert response.status_code == 200
    assert response.get_json()["formatted"] == "€ 20.00"


def test_convert_missing_rate_returns_404(client, clean_rates):
    response = client.post(
        "/rates/convert", json={"amount": 10, "from_currency": "USD", "to_currency": "IDR"}
    )

    assert response.status_code == 404
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["currency"] == "IDR"
    assert payload["message"] == "Exchange rate not found for USD->IDR"


def test_convert_rejects_unsupported_currency(client, seeded):
    response = client.post(
        "/rates/convert", json={"amount": 10, "from_currency": "USD", "to_currency": "JPY"}
    )

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["field"] == "to_currency"
    assert payload["code"] == "JPY"
    assert payload["field_errors"] == {"to_currency": [payload["message"]]}


def test_convert_requires_amount(client, seeded):
    response = client.post("/rates/convert", json={"from_currency": "USD", "to_currency": "EUR"})

    assert response.status_code == 422


def test_convert_amount_too_large_to_round_returns_422(client, seeded):
    response = client.post(
        "/rates/convert", json={"amount": "1e27", "from_currency": "USD", "to_currency": "IDR"}
    )

    assert response.status_code == 422
    assert "too large" in response.get_json()["message"]


def test_price_range_amount_too_large_to_round_returns_422(client, seeded):
    response = client.post(
        "/rates/price-range",
        json={"target_currency": "IDR", "items": [{"amount": "1e27", "currency": "USD"}]},
    )

    assert response.status_code == 422


def test_price_range_formats_bounds(client, seeded):
    response = client.post(
        "/rates/price-range",
        json={
            "target_currency": "USD",
            "items": [{"amount": 10, "currency": "USD"}, {"amount": 9, "currency": "EUR"}],
        },
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["min"] == "10.00"
    assert payload["max"] == "10.46"
    assert payload["formatted"] == "$ 10.00 - $ 10.46"


def test_price_range_collapses_equal_bounds(client, seeded):
    response = client.post(
        "/rates/price-range",
        json={
            "target_currency": "IDR",
            "items": [{"amount": 1, "currency": "USD"}, {"amount": "16604.5", "currency": "IDR"}],
        },
    )

    payload = response.get_json()
    assert payload["min"] == payload["max"] == "16605"
    assert payload["formatted"] == "Rp 16,605"


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ({"target_currency": "USD", "items": [{"amount": 1, "currency": "GBP"}]}, "currency"),
        ({"target_currency": "GBP", "items": [{"amount": 1, "currency": "USD"}]}, "target_currency"),
    ],
)
def test_price_range_rejects_unsupported_currencies(client, seeded, body, field):
    response = client.post("/rates/price-range", json=body)

    assert response.status_code == 422
    assert response.get_json()["field"] == field


def test_price_range_requires_items(client, seeded):
    response = client.post("/rates/price-range", json={"target_currency": "USD", "items": []})

    assert response.status_code == 422


def test_update_refreshes_rates(client, service, clean_rates):
    response = client.post("/rates/update")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert payload["trigger"] == "manual"
    assert payload["source"] == "mock"
    assert payload["rates_written"] == 12
    assert service.repository.get("IDR", "USD") is not None


def test_update_reports_upstream_failure_as_502(client, service, clean_rates, monkeypatch):
    _swap_synchronizer(monkeypatch, service, FailingProvider(ProviderUnavailable("ExchangeRate.host unavailable")))

    response = client.post("/rates/update")

    assert response.status_code == 502
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["result"]["error_type"] == "ProviderUnavailable"
    assert service.repository.list_all() == []


def test_update_with_only_malformed_quotes_is_502(client, service, clean_rates, monkeypatch):
    _swap_synchronizer(monkeypatch, service, StaticProvider({"IDR": "abc"}))

    response = client.post("/rates/update")

    assert response.status_code == 502
    assert response.get_json()["result"]["error_type"] == "MalformedQuote"


def test_update_reports_storage_failure_as_503(client, service, monkeypatch):
    repository = FakeRepository(fail_with=StorageFailure("database is locked"))
    _swap_synchronizer(monkeypatch, service, StaticProvider(SEED_RATES), repository)

    response = client.post("/rates/update")

    assert response.status_code == 503
    assert response.get_json()["result"]["error_type"] == "StorageFailure"


def test_update_while_refresh_in_flight_returns_409(client, service, monkeypatch):
    provider = BlockingProvider(SEED_RATES)
    synchronizer = _swap_synchronizer(monkeypatch, service, provider, FakeRepository())

    worker = threading.Thread(target=synchronizer.synchronize, kwargs={"trigger": "scheduled"})
    worker.start()
    assert provider.started.wait(timeout=5)
    try:
        response = client.post("/rates/update")
    finally:
        provider.release.set()
        worker.join(timeout=5)

    assert response.status_code == 409
    payload = response.get_json()
    assert payload["result"]["already_running"] is True
    assert len(provider.calls) == 1
