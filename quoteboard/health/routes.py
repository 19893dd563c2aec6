"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from quoteboard.errors import APIError
from quoteboard.schemas import HealthQuotesSchema, HealthStatusSchema
from quoteboard.services.currency_registry import registry
from quoteboard.services.refresh_controller import CONTROLLER_EXT_KEY, RefreshController

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "fx-quoteboard"),
        }


@blp.route("/quotes")
class HealthQuotes(MethodView):
    @blp.response(200, HealthQuotesSchema())
    def get(self):
        """Report cache freshness without contacting the provider."""

        controller: RefreshController | None = current_app.extensions.get(CONTROLLER_EXT_KEY)  # type: ignore[assignment]
        if controller is None:
            raise APIError("Quote service unavailable.", status_code=503)

        quotes, state = controller.inspect()
        return {
            "status": "empty" if state.is_empty else "ok",
            "reference_currency": registry.reference,
            "cached_count": len(quotes),
            "tracked_count": len(registry.tracked),
            "last_cached_at": state.most_recent_cached_at,
            "can_refresh": state.can_refresh,
            "remaining_seconds": state.remaining_seconds,
        }
