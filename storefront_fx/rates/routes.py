"""Route handlers for exchange rates."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from storefront_fx.errors import APIError, ConflictError, NotFoundError, ValidationError
from storefront_fx.schemas import (
    ConvertRequestSchema,
    ConvertResponseSchema,
    ErrorMessageSchema,
    FreshnessSchema,
    PriceRangeRequestSchema,
    PriceRangeResponseSchema,
    RatesListingSchema,
    SyncResultSchema,
)
from storefront_fx.services.exchange_rates import ExchangeRateService, get_service
from storefront_fx.services.formatting import format_amount, format_price_range
from storefront_fx.services.fx_conversion import ConversionError, PricedItem, RateNotFound
from storefront_fx.utils.datetime import utc_now
from storefront_fx.validation import validate_currency_code

from . import blp

UPSTREAM_ERROR_TYPES = {"ProviderUnavailable", "ProviderRejected", "ProviderError", "MalformedQuote"}


def _service() -> ExchangeRateService:
    return get_service(current_app)


@blp.route("")
class RatesListing(MethodView):
    @blp.response(200, RatesListingSchema())
    def get(self):
        """Current base-currency rate table for display."""

        return _service().rates_for_display()


@blp.route("/fresh")
class RatesFreshness(MethodView):
    @blp.response(200, FreshnessSchema())
    def get(self):
        return {"is_fresh": _service().is_fresh(), "timestamp": utc_now()}


@blp.route("/convert")
class RatesConvert(MethodView):
    @blp.arguments(ConvertRequestSchema)
    @blp.response(200, ConvertResponseSchema())
    @blp.alt_response(404, schema=ErrorMessageSchema, description="No stored rate for a currency")
    def post(self, data):
        """Convert an amount between two supported currencies, rounded for display."""

        service = _service()
        source = validate_currency_code(data["from_currency"], service.currencies, field="from_currency")
        target = validate_currency_code(data["to_currency"], service.currencies, field="to_currency")

        try:
            converted = service.convert_and_round(data["amount"], source, target)
        except RateNotFound as exc:
            raise NotFoundError(str(exc), payload={"currency": exc.currency}) from exc
        except ConversionError as exc:
            raise ValidationError(str(exc)) from exc

        return {
            "original_amount": data["amount"],
            "from_currency": source,
            "to_currency": target,
            "converted_amount": converted,
            "formatted": format_amount(converted, target),
            "timestamp": utc_now(),
        }


@blp.route("/price-range")
class RatesPriceRange(MethodView):
    @blp.arguments(PriceRangeRequestSchema)
    @blp.response(200, PriceRangeResponseSchema())
    @blp.alt_response(404, schema=ErrorMessageSchema, description="No stored rate for a currency")
    def post(self, data):
        """Min/max of several native prices after per-item conversion and rounding."""

        service = _service()
        target = validate_currency_code(
            data["target_currency"], service.currencies, field="target_currency"
        )
        items = [
            PricedItem(
                amount=item["amount"],
                currency=validate_currency_code(item["currency"], service.currencies, field="currency"),
            )
            for item in data["items"]
        ]

        try:
            result = service.price_range(items, target)
        except RateNotFound as exc:
            raise NotFoundError(str(exc), payload={"currency": exc.currency}) from exc
        except ConversionError as exc:
            raise ValidationError(str(exc)) from exc

        return {
            "currency": target,
            "min": result.min,
            "max": result.max,
            "formatted_min": format_amount(result.min, target),
            "formatted_max": format_amount(result.max, target),
            "formatted": format_price_range(result, target),
        }


@blp.route("/update")
class RatesUpdate(MethodView):
    @blp.response(200, SyncResultSchema())
    @blp.alt_response(409, schema=ErrorMessageSchema, description="A refresh is already in flight")
    @blp.alt_response(502, schema=ErrorMessageSchema, description="Provider unavailable or rejected the request")
    @blp.alt_response(503, schema=ErrorMessageSchema, description="Rates could not be stored")
    def post(self):
        """Trigger an on-demand refresh sharing the scheduler's in-flight gate."""

        result = _service().refresh(trigger="manual")
        if result.success:
            return result

        payload = {"result": SyncResultSchema().dump(result)}
        if result.already_running:
            raise ConflictError(result.error or "Refresh already running.", payload=payload)
        if result.error_type in UPSTREAM_ERROR_TYPES:
            raise APIError(result.error or "Upstream provider unavailable.", status_code=502, payload=payload)
        raise APIError(result.error or "Refresh failed.", status_code=503, payload=payload)
