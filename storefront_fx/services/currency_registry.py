"""Static currency definitions and the configured supported-currency registry."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CurrencyDefinition:
    """Display metadata for a currency code."""

    code: str
    name: str
    symbol: str
    decimal_places: int


CURRENCY_DEFINITIONS: Mapping[str, CurrencyDefinition] = {
    definition.code: definition
    for definition in (
        CurrencyDefinition("USD", "US Dollar", "$", 2),
        CurrencyDefinition("IDR", "Indonesian Rupiah", "Rp", 0),
        CurrencyDefinition("EUR", "Euro", "€", 2),
        CurrencyDefinition("MYR", "Malaysian Ringgit", "RM", 2),
        CurrencyDefinition("SGD", "Singapore Dollar", "S$", 2),
        CurrencyDefinition("HKD", "Hong Kong Dollar", "HK$", 2),
        CurrencyDefinition("AED", "UAE Dirham", "د.إ", 2),
    )
}

DEFAULT_DECIMAL_PLACES = 2


def get_definition(code: str) -> CurrencyDefinition | None:
    """Return the static definition for `code`, if one exists."""

    return CURRENCY_DEFINITIONS.get(str(code).strip().upper())


def decimal_places_for(code: str) -> int:
    definition = get_definition(code)
    return definition.decimal_places if definition else DEFAULT_DECIMAL_PLACES


@dataclass
class CurrencyRegistry:
    """The base currency plus the fixed basket of currencies kept in sync."""

    base_currency: str
    basket: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        self.base_currency = self.base_currency.strip().upper()
        self.basket = tuple(
            code for code in (c.strip().upper() for c in self.basket) if code != self.base_currency
        )

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> CurrencyRegistry:
        basket = config.get("FX_SUPPORTED_CURRENCIES") or ()
        if isinstance(basket, str):
            basket = tuple(basket.split(","))
        return cls(
            base_currency=str(config.get("FX_BASE_CURRENCY", "USD")),
            basket=tuple(basket),  # type: ignore[arg-type]
        )

    @property
    def codes(self) -> set[str]:
        """Every code the service converts between: base plus basket."""

        return {self.base_currency, *self.basket}

    def is_allowed(self, code: str) -> bool:
        """Check if the given code is supported."""

        return str(code).strip().upper() in self.codes

    def definitions(self) -> list[CurrencyDefinition]:
        """Return definitions for supported codes, base first then basket order."""

        return [
            get_definition(code) or CurrencyDefinition(code, code, code, DEFAULT_DECIMAL_PLACES)
            for code in self._ordered_codes()
        ]

    def _ordered_codes(self) -> Iterable[str]:
        yield self.base_currency
        yield from self.basket


def init_registry(app) -> CurrencyRegistry:
    """Build the registry from configuration and attach it to the Flask app."""

    registry = CurrencyRegistry.from_config(app.config)
    app.extensions["currency_registry"] = registry
    return registry
