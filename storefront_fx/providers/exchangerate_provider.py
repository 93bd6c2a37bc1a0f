"""ExchangeRate.host provider implementation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from storefront_fx.providers.base import BaseRateProvider, ProviderRejected, ProviderUnavailable
from storefront_fx.providers.schemas import RateQuoteSet, quotes_from_pair_keys
from storefront_fx.utils.datetime import from_unix_timestamp

from .exchangerate_client import (
    ExchangeRateHostClient,
    ExchangeRateHostClientConfig,
    ExchangeRateHostError,
    ExchangeRateHostRejected,
)

DEFAULT_BASE_URL = "https://api.exchangerate.host"
SOURCE_TAG = "exchangerate.host"


class ExchangeRateHostProvider(BaseRateProvider):
    """Provider that fetches live quotes from ExchangeRate.host."""

    name = "exchange"
    source = SOURCE_TAG

    def __init__(self, client: ExchangeRateHostClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> ExchangeRateHostProvider:
        client_config = cls._build_client_config(config)
        return cls(ExchangeRateHostClient(client_config))

    def fetch(self, base_currency: str, basket: Sequence[str]) -> RateQuoteSet:
        base = self._normalize_symbol(base_currency)
        targets = [self._normalize_symbol(code) for code in basket]
        params = {
            "source": base,
            "currencies": ",".join(targets),
        }
        try:
            payload = self._client.get("/live", params=params)
        except ExchangeRateHostRejected as exc:
            raise ProviderRejected(str(exc), code=exc.code, detail=exc.info) from exc
        except ExchangeRateHostError as exc:
            raise ProviderUnavailable(str(exc)) from exc

        raw_quotes = payload.get("quotes")
        raw_timestamp = payload.get("timestamp")
        if not isinstance(raw_quotes, dict) or raw_timestamp is None:
            raise ProviderRejected("Unexpected response payload from ExchangeRate.host")
        try:
            as_of = from_unix_timestamp(raw_timestamp)
        except (TypeError, ValueError, OverflowError) as exc:
            raise ProviderRejected(
                f"Unexpected timestamp from ExchangeRate.host: {raw_timestamp!r}"
            ) from exc

        return RateQuoteSet(
            base_currency=base,
            source=self.source,
            as_of=as_of,
            quotes=quotes_from_pair_keys(base, raw_quotes, basket=set(targets)),
        )

    @staticmethod
    def _normalize_symbol(value: str) -> str:
        if not value or not str(value).strip():
            raise ValueError("Currency symbol cannot be empty.")
        return str(value).strip().upper()

    @classmethod
    def _build_client_config(cls, config: Mapping[str, Any]) -> ExchangeRateHostClientConfig:
        base_url_value = config.get("RATES_API_BASE_URL")
        if not isinstance(base_url_value, str) or not base_url_value.strip():
            base_url = DEFAULT_BASE_URL
        else:
            base_url = base_url_value
        timeout = float(config.get("REQUEST_TIMEOUT_SECONDS", 10))
        access_key = str(config.get("EXCHANGERATE_API_KEY") or "")
        return ExchangeRateHostClientConfig(
            base_url=base_url,
            timeout=timeout,
            access_key=access_key,
        )
