"""Fetch, normalize and persist the configured currency basket."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, localcontext
from time import perf_counter
from typing import Any

from storefront_fx.logging import sync_log_extra
from storefront_fx.providers import BaseRateProvider, MalformedQuote, ProviderError, RateQuoteSet
from storefront_fx.services.fx_conversion import get_decimal_context
from storefront_fx.services.rate_store import (
    ExchangeRateRow,
    InvalidRateRows,
    RateRepository,
    StorageFailure,
)
from storefront_fx.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ALREADY_RUNNING_MESSAGE = "Exchange rate synchronization already in progress."


@dataclass(frozen=True)
class SkippedQuote:
    currency: str
    reason: str


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one synchronization attempt."""

    success: bool
    trigger: str
    timestamp: datetime
    rates_written: int = 0
    as_of: datetime | None = None
    source: str | None = None
    skipped: tuple[SkippedQuote, ...] = field(default_factory=tuple)
    error: str | None = None
    error_type: str | None = None
    already_running: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "trigger": self.trigger,
            "timestamp": self.timestamp.isoformat(),
            "rates_written": self.rates_written,
            "as_of": self.as_of.isoformat() if self.as_of else None,
            "source": self.source,
            "skipped": [{"currency": s.currency, "reason": s.reason} for s in self.skipped],
            "error": self.error,
            "error_type": self.error_type,
            "already_running": self.already_running,
        }


class RateSynchronizer:
    """Run provider fetch → normalize → upsert behind a single in-flight gate.

    The gate is shared by every trigger (scheduled, startup, CLI, HTTP); a
    call that finds it held returns at once with ``already_running=True``.
    `synchronize` never raises: failures come back as ``success=False``.
    """

    def __init__(
        self,
        provider: BaseRateProvider,
        repository: RateRepository,
        base_currency: str,
        basket: Sequence[str],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._provider = provider
        self._repository = repository
        self._base = base_currency.strip().upper()
        self._basket = tuple(
            code for code in (c.strip().upper() for c in basket) if code != self._base
        )
        self._clock = clock
        self._gate = threading.Lock()
        self._last_result: SyncResult | None = None
        self._last_success: SyncResult | None = None

    @property
    def provider_name(self) -> str:
        return getattr(self._provider, "name", self._provider.__class__.__name__)

    @property
    def in_flight(self) -> bool:
        return self._gate.locked()

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    @property
    def last_success(self) -> SyncResult | None:
        return self._last_success

    def synchronize(self, trigger: str = "manual") -> SyncResult:
        if not self._gate.acquire(blocking=False):
            logger.info(
                "Skipping %s rate synchronization; another run is in flight",
                trigger,
                extra=sync_log_extra(
                    event="sync.skipped",
                    trigger=trigger,
                    status="already_running",
                    provider=self.provider_name,
                    base=self._base,
                ),
            )
            return SyncResult(
                success=False,
                trigger=trigger,
                timestamp=self._clock(),
                error=ALREADY_RUNNING_MESSAGE,
                error_type="AlreadyRunning",
                already_running=True,
            )

        try:
            result = self._run(trigger)
        finally:
            self._gate.release()

        self._last_result = result
        if result.success:
            self._last_success = result
        return result

    def _run(self, trigger: str) -> SyncResult:
        start = perf_counter()
        try:
            quote_set = self._provider.fetch(self._base, self._basket)
            rows, skipped = self._build_rows(quote_set, trigger)
            if not rows:
                return self._failure(
                    trigger,
                    start,
                    MalformedQuote(self._base, "no usable quotes in provider response"),
                    skipped=skipped,
                )
            written = self._repository.upsert_many(rows)
        except (ProviderError, StorageFailure, InvalidRateRows) as exc:
            return self._failure(trigger, start, exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during %s rate synchronization", trigger)
            return self._failure(trigger, start, exc)

        duration = (perf_counter() - start) * 1000
        logger.info(
            "Exchange rate synchronization completed: %s rates written",
            written,
            extra=sync_log_extra(
                event="sync.completed",
                trigger=trigger,
                status="success",
                provider=self.provider_name,
                base=self._base,
                duration_ms=duration,
                rates_written=written,
                skipped=[item.currency for item in skipped],
            ),
        )
        return SyncResult(
            success=True,
            trigger=trigger,
            timestamp=self._clock(),
            rates_written=written,
            as_of=quote_set.as_of,
            source=quote_set.source,
            skipped=tuple(skipped),
        )

    def _build_rows(
        self, quote_set: RateQuoteSet, trigger: str
    ) -> tuple[list[ExchangeRateRow], list[SkippedQuote]]:
        rows: list[ExchangeRateRow] = []
        skipped: list[SkippedQuote] = []
        for currency in self._basket:
            try:
                rate = quote_set.parse_quote(currency)
            except MalformedQuote as exc:
                skipped.append(SkippedQuote(currency=exc.currency, reason=exc.reason))
                logger.warning(
                    "Skipping malformed quote for %s: %s",
                    exc.currency,
                    exc.reason,
                    extra=sync_log_extra(
                        event="sync.quote_rejected",
                        trigger=trigger,
                        status="skipped",
                        provider=self.provider_name,
                        base=self._base,
                        error=exc.reason,
                    ),
                )
                continue

            with localcontext(get_decimal_context()):
                inverse = Decimal(1) / rate
            rows.append(self._row(self._base, currency, rate, quote_set))
            rows.append(self._row(currency, self._base, inverse, quote_set))
        return rows, skipped

    @staticmethod
    def _row(from_currency: str, to_currency: str, rate: Decimal, quote_set: RateQuoteSet) -> ExchangeRateRow:
        return ExchangeRateRow(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            source=quote_set.source,
            last_updated=quote_set.as_of,
        )

    def _failure(
        self,
        trigger: str,
        start: float,
        exc: Exception,
        skipped: Sequence[SkippedQuote] = (),
    ) -> SyncResult:
        duration = (perf_counter() - start) * 1000
        error_type = exc.__class__.__name__
        logger.error(
            "Exchange rate synchronization failed: %s",
            exc,
            extra=sync_log_extra(
                event="sync.failed",
                trigger=trigger,
                status="error",
                provider=self.provider_name,
                base=self._base,
                duration_ms=duration,
                skipped=[item.currency for item in skipped],
                error=f"{error_type}: {exc}",
            ),
        )
        return SyncResult(
            success=False,
            trigger=trigger,
            timestamp=self._clock(),
            skipped=tuple(skipped),
            error=str(exc),
            error_type=error_type,
        )
