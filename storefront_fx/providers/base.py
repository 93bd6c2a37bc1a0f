"""Abstract interface and error taxonomy for FX rate providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from .schemas import RateQuoteSet


class ProviderError(Exception):
    """Raised when an upstream provider cannot fulfill a request."""


class ProviderUnavailable(ProviderError):
    """The provider could not be reached: timeout, transport or HTTP failure."""


class ProviderRejected(ProviderError):
    """The provider answered but flagged its own payload as unsuccessful."""

    def __init__(self, message: str, *, code: int | str | None = None, detail: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.detail = detail


class BaseRateProvider(ABC):
    """Defines the interface all FX rate providers must implement."""

    name: str

    @abstractmethod
    def fetch(self, base_currency: str, basket: Sequence[str]) -> RateQuoteSet:
        """Retrieve live quotes from `base_currency` to every code in `basket`."""
