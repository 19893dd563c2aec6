"""CLI commands for inspecting and refreshing the quote cache."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from quoteboard.services.refresh_controller import CONTROLLER_EXT_KEY, RefreshController


def _controller() -> RefreshController:
    controller = current_app.extensions.get(CONTROLLER_EXT_KEY)
    if controller is None:
        raise click.ClickException("Quote refresh controller is not configured.")
    return controller


@click.command("refresh-quotes")
@with_appcontext
def refresh_quotes() -> None:
    """Refresh cached quotes from the provider, honouring the cooldown."""

    served = _controller().serve(refresh_requested=True)
    if served.refreshed:
        click.echo(f"Refreshed {len(served.quotes)} quotes.")
    elif not served.can_refresh:
        click.echo(f"Cooldown active; next refresh allowed in {served.remaining_seconds}s.")
    else:
        reason = served.provider_error or "provider returned no quotes"
        click.echo(f"Refresh failed ({reason}); serving {len(served.quotes)} cached quotes.")


@click.command("quotes-status")
@with_appcontext
def quotes_status() -> None:
    """Print the cached quotes and cooldown state without calling the provider."""

    quotes, state = _controller().inspect()
    if state.is_empty:
        click.echo("Quote cache is empty.")
        return

    for quote in quotes:
        click.echo(
            f"{quote.currency}  bid={quote.bid:.4f}  ask={quote.ask:.4f}  "
            f"change={quote.pct_change:+.2f}%  cached_at={quote.cached_at.isoformat()}"
        )
    if state.can_refresh:
        click.echo("Refresh allowed.")
    else:
        click.echo(f"Refresh allowed in {state.remaining_seconds}s.")
