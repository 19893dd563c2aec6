"""CLI entry points."""

from __future__ import annotations

from flask import Flask

from .quotes import quotes_status, refresh_quotes


def register_cli(app: Flask) -> None:
    """Register CLI commands on the given Flask app."""

    app.cli.add_command(refresh_quotes)
    app.cli.add_command(quotes_status)
