"""Freshness checks over the stored rate table."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from storefront_fx.services.rate_store import RateRepository
from storefront_fx.utils.datetime import ensure_utc, utc_now

DEFAULT_TTL = timedelta(hours=8)


class FreshnessEvaluator:
    """Decide whether the stored basket can be served without a refresh.

    The basket is treated as one snapshot: a single pair older than the TTL
    makes the whole table stale.
    """

    def __init__(
        self,
        repository: RateRepository,
        base_currency: str,
        basket: Sequence[str],
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._base = base_currency
        self._basket = tuple(basket)
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def is_fresh(self, now: datetime | None = None, ttl: timedelta | None = None) -> bool:
        rows = self._repository.list(self._base, self._basket)
        if not rows:
            return False
        cutoff = self._now(now) - (ttl if ttl is not None else self._ttl)
        return all(ensure_utc(row.last_updated) > cutoff for row in rows)

    def oldest_update(self) -> datetime | None:
        """Return the oldest `last_updated` in the current table, if any."""

        rows = self._repository.list(self._base, self._basket)
        if not rows:
            return None
        return min(ensure_utc(row.last_updated) for row in rows)

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now) if now is not None else self._clock()
