"""Mock provider implementation for testing and local development."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, localcontext

from storefront_fx.utils.datetime import utc_now

from .base import BaseRateProvider, ProviderRejected
from .schemas import RateQuoteSet

SEED_BASE_CURRENCY = "USD"

# USD-based reference quotes used to seed a fresh storefront database.
SEED_RATES: dict[str, Decimal] = {
    "IDR": Decimal("16604.6"),
    "EUR": Decimal("0.860704"),
    "MYR": Decimal("4.225039"),
    "SGD": Decimal("1.297904"),
    "HKD": Decimal("7.784804"),
    "AED": Decimal("3.672504"),
}


def seed_rates_for(base_currency: str, basket: Sequence[str]) -> dict[str, Decimal]:
    """Return seed quotes for `basket` expressed against `base_currency`.

    Quotes for any other base are cross rates through USD. Codes with no seed
    rate are left out; an unknown base yields an empty mapping.
    """

    base = str(base_currency).upper()
    if base == SEED_BASE_CURRENCY:
        anchor = Decimal(1)
    elif base in SEED_RATES:
        anchor = SEED_RATES[base]
    else:
        return {}

    quotes: dict[str, Decimal] = {}
    with localcontext() as ctx:
        ctx.prec = 28
        for raw in basket:
            code = str(raw).upper()
            if code == base:
                continue
            if code == SEED_BASE_CURRENCY:
                quotes[code] = Decimal(1) / anchor
            elif code in SEED_RATES:
                quotes[code] = SEED_RATES[code] if anchor == 1 else SEED_RATES[code] / anchor
    return quotes


class MockRateProvider(BaseRateProvider):
    """Deterministic provider serving the seed rates for any seeded base."""

    name = "mock"
    source = "mock"

    def fetch(self, base_currency: str, basket: Sequence[str]) -> RateQuoteSet:
        base = str(base_currency).upper()
        if base != SEED_BASE_CURRENCY and base not in SEED_RATES:
            raise ProviderRejected(f"Mock provider has no seed rates for base {base}", code="base")
        return RateQuoteSet(
            base_currency=base,
            source=self.source,
            as_of=utc_now(),
            quotes=seed_rates_for(base, basket),
        )
