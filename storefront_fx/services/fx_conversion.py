"""Currency conversion, triangulation, rounding and price ranges.

Everything here is pure: functions operate on an immutable `RateTable`
snapshot and never touch the database.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import (
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
    getcontext,
    localcontext,
)
from typing import Dict

from storefront_fx.services.currency_registry import decimal_places_for

ROUNDING_PRECISION = 28


class ConversionError(ValueError):
    """Raised when an amount cannot be converted with the given rate table."""


class RateNotFound(ConversionError):
    """The rate table has no entry for a currency involved in a conversion."""

    def __init__(self, currency: str, base_currency: str | None = None) -> None:
        pair = f"{base_currency}->{currency}" if base_currency else currency
        super().__init__(f"Exchange rate not found for {pair}")
        self.currency = currency
        self.base_currency = base_currency


def get_decimal_context():
    """Return the shared Decimal context used across FX conversions."""

    context = getcontext().copy()
    context.prec = ROUNDING_PRECISION
    context.rounding = ROUND_HALF_EVEN
    return context


def normalize_currency(code: str) -> str:
    """Normalize a currency code to canonical uppercase form."""

    if not code or not str(code).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(code).strip().upper()
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert input into a Decimal; floats go through `str` to keep their literal value."""

    with localcontext(get_decimal_context()):
        return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class RateTable:
    """Snapshot of ``rate(base, X)`` for every stored basket currency."""

    base_currency: str
    rates: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_currency", normalize_currency(self.base_currency))
        object.__setattr__(
            self,
            "rates",
            {normalize_currency(code): to_decimal(value) for code, value in self.rates.items()},
        )

    @classmethod
    def from_records(cls, base_currency: str, records: Iterable) -> RateTable:
        """Build a table from repository records whose source is the base currency."""

        base = normalize_currency(base_currency)
        rates: Dict[str, Decimal] = {}
        for record in records:
            if normalize_currency(record.from_currency) != base:
                continue
            rates[normalize_currency(record.to_currency)] = to_decimal(record.rate)
        return cls(base_currency=base, rates=rates)

    def rate_for(self, currency: str) -> Decimal:
        """Return ``rate(base, currency)``; raise if it is missing or unusable."""

        code = normalize_currency(currency)
        if code == self.base_currency:
            return Decimal(1)
        try:
            rate = self.rates[code]
        except KeyError:
            raise RateNotFound(code, self.base_currency) from None
        if rate <= 0:
            raise ConversionError(f"Exchange rate for {self.base_currency}->{code} is not positive")
        return rate


def convert(
    amount: Decimal | int | float | str,
    from_currency: str,
    to_currency: str,
    table: RateTable,
) -> Decimal:
    """Convert `amount` between two currencies, triangulating through the base.

    Raises:
        RateNotFound: If either side needs a rate the table does not hold.
        ConversionError: If a needed rate is zero or negative, or the amount
            is not a finite number.
    """

    source = normalize_currency(from_currency)
    target = normalize_currency(to_currency)
    value = _finite_amount(amount)
    if source == target:
        return value

    with localcontext(get_decimal_context()):
        if source == table.base_currency:
            return value * table.rate_for(target)
        if target == table.base_currency:
            return value / table.rate_for(source)
        return value / table.rate_for(source) * table.rate_for(target)


def round_amount(amount: Decimal | int | float | str, currency: str) -> Decimal:
    """Round half-up to the currency's decimal places (2 for unknown codes).

    Raises:
        ConversionError: If the rounded value needs more digits than the
            shared context carries.
    """

    places = decimal_places_for(currency)
    quantum = Decimal(1).scaleb(-places)
    value = _finite_amount(amount)
    with localcontext(get_decimal_context()):
        try:
            return value.quantize(quantum, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ConversionError(
                f"Amount {value} is too large to round to {places} decimal places"
            ) from exc


def _finite_amount(amount: Decimal | int | float | str) -> Decimal:
    try:
        value = to_decimal(amount)
    except (InvalidOperation, ValueError) as exc:
        raise ConversionError(f"Amount {amount!r} is not a number") from exc
    if not value.is_finite():
        raise ConversionError(f"Amount {amount!r} is not a finite number")
    return value


@dataclass(frozen=True)
class PricedItem:
    amount: Decimal
    currency: str


@dataclass(frozen=True)
class PriceRange:
    min: Decimal
    max: Decimal


def price_range(
    items: Iterable[PricedItem],
    target_currency: str,
    table: RateTable,
) -> PriceRange | None:
    """Return the min/max of the individually converted and rounded prices.

    Each item is rounded before the range is taken so the bounds equal what
    a shopper sees on the matching item. Returns None for no items.
    """

    prices = [
        round_amount(convert(item.amount, item.currency, target_currency, table), target_currency)
        for item in items
    ]
    if not prices:
        return None
    return PriceRange(min=min(prices), max=max(prices))
