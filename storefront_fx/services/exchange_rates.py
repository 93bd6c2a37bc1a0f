"""Exchange rate service wiring the repository, synchronizer and conversion engine."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from flask import Flask

from storefront_fx.database import get_session_factory
from storefront_fx.providers import BaseRateProvider
from storefront_fx.providers.mock import seed_rates_for
from storefront_fx.providers.registry import init_provider
from storefront_fx.services.currency_registry import CurrencyRegistry, init_registry
from storefront_fx.services.freshness import FreshnessEvaluator
from storefront_fx.services.fx_conversion import (
    PricedItem,
    PriceRange,
    RateTable,
    convert,
    price_range,
    round_amount,
)
from storefront_fx.services.rate_store import ExchangeRateRecord, ExchangeRateRow, RateRepository
from storefront_fx.services.synchronizer import RateSynchronizer, SyncResult
from storefront_fx.utils.datetime import utc_now

logger = logging.getLogger(__name__)

SERVICE_EXT_KEY = "fx_service"
SEED_SOURCE = "seeder"


class ExchangeRateService:
    """Single entry point used by routes, CLI commands and the scheduler.

    One instance is built by the application factory and shared through
    ``app.extensions``; tests construct their own with fakes.
    """

    def __init__(
        self,
        repository: RateRepository,
        synchronizer: RateSynchronizer,
        freshness: FreshnessEvaluator,
        currencies: CurrencyRegistry,
    ) -> None:
        self.repository = repository
        self.synchronizer = synchronizer
        self.freshness = freshness
        self.currencies = currencies

    @property
    def base_currency(self) -> str:
        return self.currencies.base_currency

    @property
    def basket(self) -> tuple[str, ...]:
        return self.currencies.basket

    def list_rates(self) -> list[ExchangeRateRecord]:
        return self.repository.list(self.base_currency, self.basket)

    def rate_table(self) -> RateTable:
        return RateTable.from_records(self.base_currency, self.list_rates())

    def rates_for_display(self) -> dict[str, Any]:
        """Return ``{base, timestamp, rates: {code: {rate, last_updated}}}``."""

        return {
            "base": self.base_currency,
            "timestamp": utc_now(),
            "rates": {
                record.to_currency: {
                    "rate": record.rate,
                    "last_updated": record.last_updated,
                }
                for record in self.list_rates()
            },
        }

    def refresh(self, trigger: str = "manual") -> SyncResult:
        return self.synchronizer.synchronize(trigger=trigger)

    def is_fresh(self, now: datetime | None = None) -> bool:
        return self.freshness.is_fresh(now)

    def convert(
        self,
        amount: Decimal | int | float | str,
        from_currency: str,
        to_currency: str,
        table: RateTable | None = None,
    ) -> Decimal:
        return convert(amount, from_currency, to_currency, table or self.rate_table())

    def convert_and_round(
        self,
        amount: Decimal | int | float | str,
        from_currency: str,
        to_currency: str,
    ) -> Decimal:
        return round_amount(self.convert(amount, from_currency, to_currency), to_currency)

    def price_range(self, items: Iterable[PricedItem], target_currency: str) -> PriceRange | None:
        return price_range(items, target_currency, self.rate_table())

    def seed_initial_rates(self) -> int:
        """Store the built-in reference rates, tagged ``seeder``, with their inverses."""

        now = utc_now()
        seeds = seed_rates_for(self.base_currency, self.basket)
        rows: list[ExchangeRateRow] = []
        for code in self.basket:
            rate = seeds.get(code)
            if rate is None:
                logger.warning("No seed rate available for %s", code)
                continue
            rows.append(ExchangeRateRow(self.base_currency, code, rate, SEED_SOURCE, now))
            rows.append(ExchangeRateRow(code, self.base_currency, Decimal(1) / rate, SEED_SOURCE, now))
        return self.repository.upsert_many(rows)


def create_service(
    app: Flask,
    provider: BaseRateProvider | None = None,
) -> ExchangeRateService:
    """Construct the service graph from application configuration."""

    currencies = init_registry(app)
    if provider is None:
        provider = init_provider(app)

    repository = RateRepository(get_session_factory(app))
    synchronizer = RateSynchronizer(
        provider=provider,
        repository=repository,
        base_currency=currencies.base_currency,
        basket=currencies.basket,
    )
    freshness = FreshnessEvaluator(
        repository=repository,
        base_currency=currencies.base_currency,
        basket=currencies.basket,
        ttl=timedelta(hours=float(app.config.get("RATES_FRESHNESS_TTL_HOURS", 8))),
    )
    return ExchangeRateService(
        repository=repository,
        synchronizer=synchronizer,
        freshness=freshness,
        currencies=currencies,
    )


def init_service(app: Flask) -> ExchangeRateService:
    """Create the service once and store it on ``app.extensions``."""

    existing = app.extensions.get(SERVICE_EXT_KEY)
    if existing is not None:
        return existing
    service = create_service(app)
    app.extensions[SERVICE_EXT_KEY] = service
    return service


def get_service(app: Flask) -> ExchangeRateService:
    service = app.extensions.get(SERVICE_EXT_KEY)
    if service is None:
        raise RuntimeError("Exchange rate service has not been initialized.")
    return service
