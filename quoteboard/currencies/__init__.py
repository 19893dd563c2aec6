"""Currencies blueprint exposing the supported code set."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Currencies", __name__, description="Supported currency codes")

from . import routes  # noqa: E402,F401
