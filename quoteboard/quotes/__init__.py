"""Quotes blueprint: cached quotes, refresh trigger, rates and conversion."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Quotes", __name__, description="Cached FX quotes and conversion")

from . import routes  # noqa: E402,F401
