"""Routes serving cached quotes, manual refresh and conversions."""

from __future__ import annotations

from typing import Any

from flask import current_app
from flask.views import MethodView

from quoteboard.errors import APIError, RateUnavailableError, ValidationError
from quoteboard.logging import record_quote_decision
from quoteboard.schemas import (
    ConversionRequestSchema,
    ConversionResponseSchema,
    QuoteBoardSchema,
    QuoteQueryArgsSchema,
    RateTableSchema,
)
from quoteboard.services.fx_conversion import (
    ConversionError,
    convert_amount,
    cross_rate,
    to_decimal,
)
from quoteboard.services.refresh_controller import (
    CONTROLLER_EXT_KEY,
    RefreshController,
    ServedQuotes,
)
from quoteboard.validation import validate_currency_code

from . import blp


def _controller() -> RefreshController:
    controller: RefreshController | None = current_app.extensions.get(CONTROLLER_EXT_KEY)  # type: ignore[assignment]
    if controller is None:
        raise APIError("Quote service unavailable.", status_code=503)
    return controller


def _serve(refresh_requested: bool) -> ServedQuotes:
    served = _controller().serve(refresh_requested=refresh_requested)
    record_quote_decision(served.decision.value, refreshed=served.refreshed)
    return served


def _board(served: ServedQuotes) -> dict[str, Any]:
    return {
        "reference_currency": served.reference_currency,
        "decision": served.decision.value,
        "can_refresh": served.can_refresh,
        "remaining_seconds": served.remaining_seconds,
        "refreshed": served.refreshed,
        "last_cached_at": served.last_cached_at,
        "quotes": list(served.quotes),
        "rates": served.rates,
    }


@blp.route("")
class QuoteBoard(MethodView):
    @blp.arguments(QuoteQueryArgsSchema, location="query")
    @blp.response(200, QuoteBoardSchema())
    def get(self, args):
        """Serve cached quotes, refreshing first when asked and allowed."""

        return _board(_serve(args["refresh"]))


@blp.route("/refresh")
class QuoteRefresh(MethodView):
    @blp.response(200, QuoteBoardSchema())
    def post(self):
        """Request a refresh; during the cooldown the cache is served unchanged."""

        return _board(_serve(True))


@blp.route("/rates")
class QuoteRates(MethodView):
    @blp.response(200, RateTableSchema())
    def get(self):
        served = _serve(False)
        return {
            "reference_currency": served.reference_currency,
            "last_cached_at": served.last_cached_at,
            "rates": served.rates,
        }


@blp.route("/convert")
class QuoteConversion(MethodView):
    @blp.arguments(ConversionRequestSchema)
    @blp.response(200, ConversionResponseSchema())
    def post(self, data):
        source = validate_currency_code(data["source"], field="from")
        target = validate_currency_code(data["target"], field="to")

        served = _serve(False)
        try:
            rate = cross_rate(source, target, served.rates)
            result = convert_amount(data["amount"], source, target, served.rates)
        except ConversionError as exc:
            raise RateUnavailableError(str(exc), payload={"currency": exc.currency}) from exc
        except ValueError as exc:
            raise ValidationError(str(exc), payload={"field": "amount"}) from exc

        return {
            "amount": to_decimal(data["amount"]),
            "source": source,
            "target": target,
            "rate": rate,
            "result": result,
            "reference_currency": served.reference_currency,
        }
