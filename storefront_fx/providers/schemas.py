"""Dataclasses describing normalized FX provider payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from storefront_fx.utils.datetime import ensure_utc


class MalformedQuote(ValueError):
    """A single currency's quote is missing, non-numeric or non-positive."""

    def __init__(self, currency: str, reason: str) -> None:
        super().__init__(f"{currency}: {reason}")
        self.currency = currency
        self.reason = reason


def _normalize_code(code: str) -> str:
    normalized = str(code).strip().upper()
    if not normalized or not normalized.isascii():
        raise ValueError(f"Currency code must be non-empty ASCII: {code!r}")
    return normalized


@dataclass(frozen=True)
class RateQuoteSet:
    """Quotes from one base currency, keyed by target currency code.

    Values are kept exactly as the provider sent them; use `parse_quote`
    to obtain a validated Decimal.
    """

    base_currency: str
    source: str
    as_of: datetime
    quotes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_currency", _normalize_code(self.base_currency))
        object.__setattr__(
            self,
            "quotes",
            {_normalize_code(code): value for code, value in self.quotes.items()},
        )
        object.__setattr__(self, "as_of", ensure_utc(self.as_of))
        if not self.source or not self.source.strip():
            raise ValueError("source must be provided for RateQuoteSet")

    def parse_quote(self, currency: str) -> Decimal:
        """Return the validated rate for `currency` or raise MalformedQuote."""

        code = _normalize_code(currency)
        if code not in self.quotes or self.quotes[code] is None:
            raise MalformedQuote(code, "quote missing")
        return parse_rate_value(code, self.quotes[code])


def parse_rate_value(currency: str, raw: object) -> Decimal:
    """Coerce a raw quote into a strictly positive, finite Decimal."""

    if isinstance(raw, bool):
        raise MalformedQuote(currency, f"non-numeric quote {raw!r}")
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise MalformedQuote(currency, f"non-numeric quote {raw!r}") from None
    if not value.is_finite():
        raise MalformedQuote(currency, f"non-finite quote {raw!r}")
    if value <= 0:
        raise MalformedQuote(currency, f"non-positive quote {raw!r}")
    return value


def quotes_from_pair_keys(
    base_currency: str, raw_quotes: Mapping[str, Any], basket: set[str] | None = None
) -> Dict[str, Any]:
    """Split vendor keys such as ``USDEUR`` into target codes.

    Keys not prefixed by the base, and targets outside `basket` when one is
    given, are dropped.
    """

    base = _normalize_code(base_currency)
    quotes: Dict[str, Any] = {}
    for key, value in raw_quotes.items():
        pair_key = str(key).strip().upper()
        if not pair_key.startswith(base) or len(pair_key) <= len(base):
            continue
        target = pair_key[len(base):]
        if basket is not None and target not in basket:
            continue
        quotes[target] = value
    return quotes
