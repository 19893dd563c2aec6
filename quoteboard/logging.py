"""Logging setup, structured JSON formatter and log-extra builders."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from flask import g, has_request_context, request
from werkzeug.exceptions import HTTPException

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

LOGGING_CONFIG_FLAG = "_logging_configured"
REQUEST_LOGGING_CONFIG_FLAG = "_request_logging_configured"

# Attributes every LogRecord carries; anything else was passed via ``extra``.
RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JSONLogFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        payload.update(_extract_extras(record.__dict__))
        return json.dumps(_json_safe(payload), separators=(",", ":"))


def setup_logging(app) -> None:
    """Install one stream handler on the root logger, configured from the app."""

    if app.config.get(LOGGING_CONFIG_FLAG):
        return

    level = _resolve_level(app.config.get("LOG_LEVEL", "INFO"))
    root_logger = logging.getLogger()
    _replace_handlers(root_logger, [_build_handler(app.config, level)])
    root_logger.setLevel(level)

    # Flask and werkzeug propagate to root so every line shares one format.
    for logger in (logging.getLogger("werkzeug"), app.logger):
        logger.handlers = []
        logger.setLevel(level)
        logger.propagate = True

    app.config[LOGGING_CONFIG_FLAG] = True


def init_request_logging(app) -> None:
    """Log one line per request, tagged with a correlation id.

    Requests served by the quote endpoints also carry the refresh decision
    taken for them (see ``record_quote_decision``).
    """

    if app.config.get(REQUEST_LOGGING_CONFIG_FLAG):
        return

    @app.before_request
    def _begin_request():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_start = time.perf_counter()
        g._request_logged = False

    @app.after_request
    def _log_completed(response):
        if g.get("request_id"):
            response.headers.setdefault(REQUEST_ID_HEADER, g.request_id)

        app.logger.info(
            "Request handled",
            extra=_request_extra(event="request.completed", status=response.status_code),
        )
        g._request_logged = True
        return response

    @app.teardown_request
    def _log_failed(exc: BaseException | None):
        if exc is None or g.get("_request_logged", False):
            return

        status = exc.code if isinstance(exc, HTTPException) and exc.code else 500
        app.logger.error(
            "Request failed",
            extra=_request_extra(event="request.failed", status=status, error=str(exc)),
        )
        g._request_logged = True

    app.config[REQUEST_LOGGING_CONFIG_FLAG] = True


def record_quote_decision(decision: str, *, refreshed: bool) -> None:
    """Remember the refresh decision so the request log line can report it."""

    if has_request_context():
        g.quote_decision = decision
        g.quotes_refreshed = refreshed


def provider_log_extra(
    *,
    provider: str,
    reference: str,
    event: str,
    status: str,
    duration_ms: float | None,
    quote_count: int | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Extras for a quote provider call."""

    return _drop_none(
        {
            "event": event,
            "provider": provider,
            "reference": reference,
            "status": status,
            "duration_ms": _round_ms(duration_ms),
            "quote_count": quote_count,
            "request_id": _current_request_id(),
            "source": provider,
            "error": error,
        }
    )


def refresh_log_extra(
    *,
    decision: str,
    refresh_requested: bool,
    provider_called: bool,
    refreshed: bool,
    remaining_seconds: int,
    cached_count: int,
) -> dict[str, Any]:
    """Extras describing one refresh controller decision."""

    return _drop_none(
        {
            "event": "quotes.refresh",
            "decision": decision,
            "refresh_requested": refresh_requested,
            "provider_called": provider_called,
            "refreshed": refreshed,
            "remaining_seconds": remaining_seconds,
            "cached_count": cached_count,
            "request_id": _current_request_id(),
            "source": "cache",
        }
    )


def _build_handler(config, level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    if _to_bool(config.get("LOG_JSON_ENABLED", False)):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(config.get("LOG_FORMAT") or DEFAULT_LOG_FORMAT))
    return handler


def _request_extra(*, event: str, status: int, error: str | None = None) -> dict[str, Any]:
    rule = request.url_rule
    return _drop_none(
        {
            "event": event,
            "route": rule.rule if rule is not None else request.path,
            "method": request.method,
            "status": status,
            "duration_ms": _round_ms(_elapsed_ms(g.get("request_start"))),
            "request_id": g.get("request_id"),
            "path": request.path,
            "source": "api",
            "decision": g.get("quote_decision"),
            "refreshed": g.get("quotes_refreshed"),
            "error": error,
            "client_ip": request.remote_addr,
        }
    )


def _elapsed_ms(start: Any) -> float | None:
    if not isinstance(start, int | float):
        return None
    return (time.perf_counter() - start) * 1000


def _current_request_id() -> str | None:
    return g.get("request_id") if has_request_context() else None


def _round_ms(value: float | None) -> float | None:
    return None if value is None else round(value, 3)


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _extract_extras(record_dict: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value
        for key, value in record_dict.items()
        if key not in RESERVED_ATTRS and not key.startswith("_")
    }


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, str | int | float | bool):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple | set | frozenset):
        return [_json_safe(item) for item in value]
    return str(value)


def _resolve_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "yes", "on"}


def _replace_handlers(logger: logging.Logger, handlers: Iterable[logging.Handler]) -> None:
    for existing in logger.handlers[:]:
        logger.removeHandler(existing)
    for handler in handlers:
        logger.addHandler(handler)
