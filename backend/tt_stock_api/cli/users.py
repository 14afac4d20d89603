"""Flask CLI commands for administering credentials."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import IntegrityError

from tt_stock_api.api.deps import get_auth_service
from tt_stock_api.models import User
from tt_stock_api.services._shared.errors import ValidationError
from tt_stock_api.services._shared.policies.credentials import check_phone_number, check_pin
from tt_stock_api.uow import SQLAlchemyUnitOfWork

LOGGER = logging.getLogger(__name__)


@click.group("users")
def users_cli() -> None:
    """Credential administration."""


@users_cli.command("create")
@click.option("--phone-number", required=True, help="10 digits starting with 0.")
@click.option(
    "--pin",
    required=True,
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="6-digit PIN (prompted when omitted).",
)
@with_appcontext
def create_command(phone_number: str, pin: str) -> None:
    """Create a user that can sign in with PHONE_NUMBER and PIN."""
    phone_number = phone_number.strip()
    try:
        check_phone_number(phone_number)
        check_pin(pin)
    except ValidationError as exc:
        raise click.BadParameter(exc.message) from exc

    pin_hash = get_auth_service().hasher.hash(pin)
    try:
        with SQLAlchemyUnitOfWork() as uow:
            if uow.users.exists_by_phone_number(phone_number):
                raise click.ClickException(f"A user with phone number {phone_number} already exists.")
            user = uow.users.add(User(phone_number=phone_number, pin_hash=pin_hash))
            user_id = user.id
    except IntegrityError as exc:
        raise click.ClickException(f"A user with phone number {phone_number} already exists.") from exc

    LOGGER.info("User created", extra={"event": "users.created", "user_id": str(user_id)})
    click.echo(f"Created user {user_id} ({phone_number})")
