"""Schemas for API requests and responses."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()


class SkippedQuoteSchema(Schema):
    currency = fields.String(required=True)
    reason = fields.String(required=True)


class SyncResultSchema(Schema):
    success = fields.Boolean(required=True)
    trigger = fields.String(required=True)
    timestamp = fields.DateTime(required=True)
    rates_written = fields.Integer(required=True)
    as_of = fields.DateTime(allow_none=True)
    source = fields.String(allow_none=True)
    skipped = fields.List(fields.Nested(SkippedQuoteSchema))
    error = fields.String(allow_none=True)
    error_type = fields.String(allow_none=True)
    already_running = fields.Boolean()


class HealthRatesSchema(Schema):
    status = fields.String(required=True)
    fresh = fields.Boolean(required=True)
    base_currency = fields.String(required=True)
    rates_count = fields.Integer(required=True)
    oldest_update = fields.DateTime(allow_none=True)
    ttl_hours = fields.Float(required=True)
    refresh_in_flight = fields.Boolean(required=True)
    last_sync = fields.Nested(SyncResultSchema, allow_none=True)
    last_success = fields.Nested(SyncResultSchema, allow_none=True)


class SchedulerStatusSchema(Schema):
    running = fields.Boolean(required=True)
    jobs_count = fields.Integer(required=True)
    schedules = fields.List(fields.String(), required=True)
    timezone = fields.String(required=True)
    next_run_times = fields.List(fields.String())


class CurrencySchema(Schema):
    code = fields.String(required=True)
    name = fields.String(required=True)
    symbol = fields.String(required=True)
    decimal_places = fields.Integer(required=True)
    is_base = fields.Boolean(required=True)


class CurrencyValidationRequestSchema(Schema):
    code = fields.String(load_default=None)


class CurrencyValidationResponseSchema(Schema):
    code = fields.String(required=True)
    message = fields.String(required=True)


class RateEntrySchema(Schema):
    rate = fields.Decimal(as_string=True, required=True)
    last_updated = fields.DateTime(required=True)


class RatesListingSchema(Schema):
    base = fields.String(required=True)
    timestamp = fields.DateTime(required=True)
    rates = fields.Dict(keys=fields.String(), values=fields.Nested(RateEntrySchema))


class FreshnessSchema(Schema):
    is_fresh = fields.Boolean(required=True)
    timestamp = fields.DateTime(required=True)


class ConvertRequestSchema(Schema):
    amount = fields.Decimal(required=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)


class ConvertResponseSchema(Schema):
    original_amount = fields.Decimal(as_string=True, required=True)
    from_currency = fields.String(required=True)
    to_currency = fields.String(required=True)
    converted_amount = fields.Decimal(as_string=True, required=True)
    formatted = fields.String(required=True)
    timestamp = fields.DateTime(required=True)


class PricedItemSchema(Schema):
    amount = fields.Decimal(required=True)
    currency = fields.String(required=True)


class PriceRangeRequestSchema(Schema):
    target_currency = fields.String(required=True)
    items = fields.List(
        fields.Nested(PricedItemSchema), required=True, validate=validate.Length(min=1)
    )


class PriceRangeResponseSchema(Schema):
    currency = fields.String(required=True)
    min = fields.Decimal(as_string=True, required=True)
    max = fields.Decimal(as_string=True, required=True)
    formatted_min = fields.String(required=True)
    formatted_max = fields.String(required=True)
    formatted = fields.String(required=True)


class ErrorMessageSchema(Schema):
    success = fields.Boolean(required=True)
    message = fields.String(required=True)
    field = fields.String()
    currency = fields.String()
    result = fields.Nested(SyncResultSchema)
