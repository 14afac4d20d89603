"""Flask CLI commands for token blacklist maintenance."""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from tt_stock_api.api.deps import get_auth_service
from tt_stock_api.services._shared.errors import InternalError


@click.group("blacklist")
def blacklist_cli() -> None:
    """Token blacklist maintenance."""


@blacklist_cli.command("purge")
@with_appcontext
def purge_command() -> None:
    """Delete entries whose token has already expired."""
    try:
        removed = get_auth_service().purge_expired_blacklist()
    except InternalError as exc:
        raise click.ClickException(f"Purge failed: {exc}") from exc
    click.echo(f"Purged {removed} expired blacklist entries")
