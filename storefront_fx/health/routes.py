"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from storefront_fx.schemas import HealthRatesSchema, HealthStatusSchema, SchedulerStatusSchema
from storefront_fx.services.exchange_rates import get_service
from storefront_fx.services.scheduler import SCHEDULER_EXT_KEY, RefreshScheduler

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "storefront-fx"),
        }


@blp.route("/rates")
class HealthRates(MethodView):
    @blp.response(200, HealthRatesSchema())
    def get(self):
        service = get_service(current_app)
        rates = service.list_rates()
        fresh = service.is_fresh()
        if not rates:
            status = "uninitialized"
        else:
            status = "ok" if fresh else "stale"

        synchronizer = service.synchronizer
        return {
            "status": status,
            "fresh": fresh,
            "base_currency": service.base_currency,
            "rates_count": len(rates),
            "oldest_update": service.freshness.oldest_update(),
            "ttl_hours": service.freshness.ttl.total_seconds() / 3600,
            "refresh_in_flight": synchronizer.in_flight,
            "last_sync": synchronizer.last_result,
            "last_success": synchronizer.last_success,
        }


@blp.route("/scheduler")
class HealthScheduler(MethodView):
    @blp.response(200, SchedulerStatusSchema())
    def get(self):
        scheduler: RefreshScheduler | None = current_app.extensions.get(SCHEDULER_EXT_KEY)
        if scheduler is None:
            return {"running": False, "jobs_count": 0, "schedules": [], "timezone": "UTC"}
        return scheduler.status()
