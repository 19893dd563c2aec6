"""Routes for currency listing and validation."""

from __future__ import annotations

from flask.views import MethodView

from quoteboard.schemas import (
    CurrencyListSchema,
    CurrencyValidationRequestSchema,
    CurrencyValidationResponseSchema,
)
from quoteboard.services.currency_registry import registry
from quoteboard.validation import validate_currency_code

from . import blp


@blp.route("")
class CurrencyList(MethodView):
    @blp.response(200, CurrencyListSchema())
    def get(self):
        return {
            "reference_currency": registry.reference,
            "codes": list(registry.codes),
            "tracked": list(registry.tracked),
        }


@blp.route("/validate")
class CurrencyValidation(MethodView):
    @blp.arguments(CurrencyValidationRequestSchema)
    @blp.response(200, CurrencyValidationResponseSchema())
    def post(self, data):
        validated = validate_currency_code(data.get("code"), field="code")
        return {
            "code": validated,
            "message": "Currency code is valid.",
        }
