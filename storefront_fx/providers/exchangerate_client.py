"""ExchangeRate.host API client and its unavailable/rejected error types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from storefront_fx.providers.http_client import HTTPClient, HTTPClientConfig, HTTPClientError

logger = logging.getLogger(__name__)


class ExchangeRateHostError(RuntimeError):
    """Raised when the ExchangeRate.host API cannot be reached."""


class ExchangeRateHostRejected(ExchangeRateHostError):
    """Raised when ExchangeRate.host answers with ``success: false``."""

    def __init__(self, message: str, *, code: int | str | None = None, info: object = None) -> None:
        super().__init__(message)
        self.code = code
        self.info = info


class ExchangeRateHostClient:
    """HTTP client for ExchangeRate.host built on the shared HTTP wrapper."""

    def __init__(self, config: ExchangeRateHostClientConfig, client: Optional[HTTPClient] = None) -> None:
        self._config = config
        self._client = client or HTTPClient(
            HTTPClientConfig(base_url=config.base_url, timeout=config.timeout)
        )

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = dict(params or {})
        if self._config.access_key:
            query.setdefault("access_key", self._config.access_key)

        try:
            payload = self._client.get(path, params=query)
        except HTTPClientError as exc:
            raise ExchangeRateHostError(f"ExchangeRate.host unavailable: {exc}") from exc

        if not payload.get("success", False):
            error_info = payload.get("error") or {}
            code = error_info.get("code") if isinstance(error_info, dict) else None
            detail = _describe_error(error_info)
            logger.warning("ExchangeRate.host rejected request: %s", detail)
            raise ExchangeRateHostRejected(
                f"ExchangeRate.host error payload: {detail}", code=code, info=error_info
            )

        return payload


def _describe_error(error_info: object) -> str:
    if isinstance(error_info, dict):
        for key in ("info", "type"):
            value = error_info.get(key)
            if value:
                return str(value)
        if error_info:
            return str(error_info)
        return "Unknown error"
    return str(error_info) if error_info else "Unknown error"


@dataclass(frozen=True)
class ExchangeRateHostClientConfig:
    """Configuration parameters for the API client."""

    base_url: str
    timeout: float
    access_key: str = ""
