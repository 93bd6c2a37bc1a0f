"""Fixed-time-of-day scheduling of exchange rate refreshes."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import Flask

from storefront_fx.services.freshness import FreshnessEvaluator
from storefront_fx.services.synchronizer import RateSynchronizer, SyncResult

logger = logging.getLogger(__name__)

SCHEDULER_EXT_KEY = "rate_scheduler"
INITIAL_CHECK_JOB_ID = "initial_rate_check"

RefreshTime = tuple[int, int]


def parse_refresh_times(value: str | Sequence[str]) -> list[RefreshTime]:
    """Parse ``"00:00,08:00,16:00"`` into sorted, de-duplicated (hour, minute) tuples.

    Raises:
        ValueError: If any entry is not a valid ``HH:MM`` time or none are given.
    """

    entries = value.split(",") if isinstance(value, str) else list(value)
    times: set[RefreshTime] = set()
    for entry in entries:
        text = str(entry).strip()
        if not text:
            continue
        hour_text, sep, minute_text = text.partition(":")
        if not sep or not hour_text.isdigit() or not minute_text.isdigit():
            raise ValueError(f"Invalid refresh time '{text}'. Expected HH:MM.")
        hour, minute = int(hour_text), int(minute_text)
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Invalid refresh time '{text}'. Expected HH:MM.")
        times.add((hour, minute))
    if not times:
        raise ValueError("At least one refresh time must be configured.")
    return sorted(times)


class RefreshScheduler:
    """Owns the background jobs that fire the synchronizer at fixed times.

    States are ``stopped`` and ``running``. Overlapping runs are prevented by
    the synchronizer's in-flight gate; a trigger that fires during a run is
    skipped, not queued.
    """

    def __init__(
        self,
        synchronizer: RateSynchronizer,
        freshness: FreshnessEvaluator,
        refresh_times: Sequence[RefreshTime],
        timezone: str = "UTC",
        scheduler_factory: Callable[..., BackgroundScheduler] = BackgroundScheduler,
    ) -> None:
        self._synchronizer = synchronizer
        self._freshness = freshness
        self._refresh_times = list(refresh_times)
        self._timezone = timezone
        self._scheduler_factory = scheduler_factory
        self._scheduler: BackgroundScheduler | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    @property
    def schedules(self) -> list[str]:
        return [f"{hour:02d}:{minute:02d}" for hour, minute in self._refresh_times]

    def start(self) -> bool:
        """Register the daily triggers and start the background scheduler.

        Returns False, with a warning, when already running.
        """

        with self._lock:
            if self._scheduler is not None:
                logger.warning("Exchange rate scheduler is already running")
                return False

            scheduler = self._scheduler_factory(timezone=self._timezone)
            for hour, minute in self._refresh_times:
                scheduler.add_job(
                    self.run_scheduled_refresh,
                    trigger=CronTrigger(hour=hour, minute=minute, timezone=self._timezone),
                    id=f"refresh_rates_{hour:02d}{minute:02d}",
                    replace_existing=True,
                    max_instances=1,
                    coalesce=True,
                )
            scheduler.start()
            self._scheduler = scheduler

        logger.info(
            "Exchange rate scheduler started at %s (%s)",
            ", ".join(self.schedules),
            self._timezone,
        )
        return True

    def stop(self) -> bool:
        """Cancel pending triggers; an in-flight fetch is left to finish on its own.

        Returns False, with a warning, when already stopped.
        """

        with self._lock:
            scheduler = self._scheduler
            if scheduler is None:
                logger.warning("Exchange rate scheduler is not running")
                return False
            self._scheduler = None

        scheduler.remove_all_jobs()
        scheduler.shutdown(wait=False)
        logger.info("Exchange rate scheduler stopped")
        return True

    def schedule_initial_check(self) -> bool:
        """Queue `run_initial_check` as an immediate one-shot job."""

        with self._lock:
            if self._scheduler is None:
                logger.warning("Cannot queue initial rate check; scheduler is not running")
                return False
            self._scheduler.add_job(
                self.run_initial_check,
                id=INITIAL_CHECK_JOB_ID,
                replace_existing=True,
                max_instances=1,
            )
        return True

    def run_scheduled_refresh(self) -> SyncResult | None:
        return self._safe_synchronize("scheduled")

    def run_initial_check(self) -> SyncResult | None:
        """Synchronize once if the stored rates are stale; return the result, if any."""

        try:
            fresh = self._freshness.is_fresh()
        except Exception:  # noqa: BLE001
            logger.exception("Could not evaluate rate freshness; refreshing anyway")
            fresh = False

        if fresh:
            logger.info("Exchange rates are fresh; skipping startup refresh")
            return None

        logger.info("Exchange rates are stale or missing; refreshing at startup")
        return self._safe_synchronize("startup")

    def status(self) -> dict[str, Any]:
        scheduler = self._scheduler
        jobs = scheduler.get_jobs() if scheduler is not None else []
        refresh_jobs = [job for job in jobs if job.id != INITIAL_CHECK_JOB_ID]
        return {
            "running": scheduler is not None,
            "jobs_count": len(refresh_jobs),
            "schedules": self.schedules,
            "timezone": self._timezone,
            "next_run_times": [
                job.next_run_time.isoformat()
                for job in refresh_jobs
                if getattr(job, "next_run_time", None) is not None
            ],
        }

    def _safe_synchronize(self, trigger: str) -> SyncResult | None:
        try:
            result = self._synchronizer.synchronize(trigger=trigger)
        except Exception:  # noqa: BLE001
            logger.exception("%s exchange rate refresh raised unexpectedly", trigger.capitalize())
            return None

        if result.already_running:
            logger.info("%s exchange rate refresh skipped: run already in flight", trigger.capitalize())
        elif result.success:
            logger.info(
                "%s exchange rate refresh completed: %s rates written",
                trigger.capitalize(),
                result.rates_written,
            )
        else:
            logger.error("%s exchange rate refresh failed: %s", trigger.capitalize(), result.error)
        return result


def init_scheduler(app: Flask, synchronizer: RateSynchronizer, freshness: FreshnessEvaluator) -> RefreshScheduler:
    """Build the scheduler, attach it to the app and start it when enabled."""

    existing = app.extensions.get(SCHEDULER_EXT_KEY)
    if existing is not None:
        return existing

    scheduler = RefreshScheduler(
        synchronizer=synchronizer,
        freshness=freshness,
        refresh_times=parse_refresh_times(app.config.get("RATES_REFRESH_TIMES", "00:00,08:00,16:00")),
        timezone=app.config.get("SCHEDULER_TIMEZONE", "UTC"),
    )
    app.extensions[SCHEDULER_EXT_KEY] = scheduler

    if not app.config.get("SCHEDULER_ENABLED", True):
        logger.info("Scheduler disabled via configuration.")
        return scheduler

    scheduler.start()
    if app.config.get("RATES_INITIAL_CHECK_ENABLED", True):
        scheduler.schedule_initial_check()
    return scheduler
