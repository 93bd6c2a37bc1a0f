"""Render amounts as display strings with symbol, grouping and fixed decimals."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from storefront_fx.services.currency_registry import get_definition
from storefront_fx.services.fx_conversion import PriceRange, round_amount, to_decimal


def format_amount(amount: Decimal | int | float | str, currency: str) -> str:
    """Format `amount` as ``"<symbol> <1,234.56>"`` using the currency's precision.

    Unknown codes render as ``"<1234.56> <CODE>"`` instead of failing.
    """

    definition = get_definition(currency)
    if definition is None:
        value = to_decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{value:.2f} {str(currency).strip().upper()}"

    value = round_amount(amount, definition.code)
    return f"{definition.symbol} {value:,.{definition.decimal_places}f}"


def format_price_range(price_range: PriceRange | None, currency: str) -> str:
    if price_range is None:
        return ""
    if price_range.min == price_range.max:
        return format_amount(price_range.min, currency)
    return f"{format_amount(price_range.min, currency)} - {format_amount(price_range.max, currency)}"
