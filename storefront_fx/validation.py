"""Validation helpers for request payloads."""

from __future__ import annotations

from collections.abc import Sequence

from storefront_fx.errors import ValidationError
from storefront_fx.services.currency_registry import CurrencyRegistry


def _preview_codes(codes: Sequence[str], max_items: int = 10) -> str:
    subset = list(sorted(codes))[:max_items]
    preview = ", ".join(subset)
    if len(codes) > max_items:
        preview += ", ..."
    return preview


def validate_currency_code(
    value: str | None,
    registry: CurrencyRegistry,
    *,
    field: str = "currency_code",
) -> str:
    """Ensure the provided currency code is one the service converts between."""

    if value is None or not str(value).strip():
        raise ValidationError(f"'{field}' is required.", payload={"field": field})

    normalized = str(value).strip().upper()
    if not normalized.isascii():
        raise ValidationError(
            f"Unsupported currency code '{normalized}'. Please use a valid ISO 4217 code.",
            payload={"field": field, "code": normalized},
        )

    if not registry.is_allowed(normalized):
        codes = tuple(registry.codes)
        hint = _preview_codes(codes) if codes else "no codes configured"
        raise ValidationError(
            f"Unsupported currency code '{normalized}'. Allowed codes: {hint}.",
            payload={"field": field, "code": normalized},
        )

    return normalized
