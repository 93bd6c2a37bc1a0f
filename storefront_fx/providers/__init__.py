"""Provider interfaces and data structures for FX rate sources."""

from .base import BaseRateProvider, ProviderError, ProviderRejected, ProviderUnavailable
from .exchangerate_client import (
    ExchangeRateHostClient,
    ExchangeRateHostClientConfig,
    ExchangeRateHostError,
    ExchangeRateHostRejected,
)
from .exchangerate_provider import ExchangeRateHostProvider
from .mock import MockRateProvider
from .schemas import MalformedQuote, RateQuoteSet

__all__ = [
    "BaseRateProvider",
    "ProviderError",
    "ProviderRejected",
    "ProviderUnavailable",
    "MalformedQuote",
    "RateQuoteSet",
    "ExchangeRateHostClient",
    "ExchangeRateHostClientConfig",
    "ExchangeRateHostError",
    "ExchangeRateHostRejected",
    "ExchangeRateHostProvider",
    "MockRateProvider",
]
