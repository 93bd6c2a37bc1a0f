"""Routes for supported currencies."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from storefront_fx.schemas import (
    CurrencySchema,
    CurrencyValidationRequestSchema,
    CurrencyValidationResponseSchema,
)
from storefront_fx.services.currency_registry import CurrencyRegistry
from storefront_fx.validation import validate_currency_code

from . import blp


def _registry() -> CurrencyRegistry:
    return current_app.extensions["currency_registry"]


@blp.route("")
class CurrencyList(MethodView):
    @blp.response(200, CurrencySchema(many=True))
    def get(self):
        registry = _registry()
        return [
            {
                "code": definition.code,
                "name": definition.name,
                "symbol": definition.symbol,
                "decimal_places": definition.decimal_places,
                "is_base": definition.code == registry.base_currency,
            }
            for definition in registry.definitions()
        ]


@blp.route("/validate")
class CurrencyValidation(MethodView):
    @blp.arguments(CurrencyValidationRequestSchema)
    @blp.response(200, CurrencyValidationResponseSchema())
    def post(self, data):
        validated = validate_currency_code(data.get("code"), _registry(), field="code")
        return {
            "code": validated,
            "message": "Currency code is valid.",
        }
