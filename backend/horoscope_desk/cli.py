"""
Horoscope Desk Backend: Command Line
=====================================

What:  Account provisioning for offices where nobody can log in yet. The
       MySQL schema ships without users, and the embedded backend only
       seeds admin@local.
How:   `horoscope-desk create-user EMAIL --role viewer` upserts the account
       through the same Gateway (and dialect translation) the API uses.
       Re-running it for an existing email resets the password.
"""

import asyncio
from typing import Optional

import click

from horoscope_desk import __version__
from horoscope_desk.config import settings
from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import HoroscopeDeskError
from horoscope_desk.main import setup_logging
from horoscope_desk.services.auth_service import auth_service
from horoscope_desk.services.session import ROLE_ADMIN, ROLE_VIEWER


async def _provision(email: str, password: str, role: str, name: Optional[str]) -> None:
    gateway = Gateway(settings)
    try:
        await auth_service.provision_user(gateway, email, password, role, name)
    finally:
        await gateway.dispose()


@click.group()
@click.version_option(version=__version__)
def cli():
    """Horoscope Desk administration commands."""
    setup_logging()


@cli.command("create-user")
@click.argument("email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    envvar="HOROSCOPE_USER_PASSWORD",
    help="Password for the account (prompted when omitted)",
)
@click.option(
    "--role",
    type=click.Choice([ROLE_VIEWER, ROLE_ADMIN]),
    default=ROLE_VIEWER,
    show_default=True,
)
@click.option("--name", default=None, help="Display name (defaults to Admin / User)")
def create_user(email: str, password: str, role: str, name: Optional[str]):
    """Create or reset the account for EMAIL."""
    try:
        asyncio.run(_provision(email, password, role, name))
    except HoroscopeDeskError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"{role.capitalize()} account ready: {email}")


if __name__ == "__main__":
    cli()
