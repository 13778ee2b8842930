"""Flask CLI commands for auth housekeeping."""

from __future__ import annotations

import logging
import os

import click
from flask import current_app
from flask.cli import with_appcontext

from authcore.core.config import ENV_VAR
from authcore.services.otp.service import OTPService

LOGGER = logging.getLogger(__name__)


def _ensure_non_production(command: str) -> None:
    """Abort destructive commands when running in production."""
    app_env = os.getenv(ENV_VAR, "development").strip().lower()
    config = current_app.config
    if app_env == "production" and not (config.get("DEBUG") or config.get("TESTING")):
        raise click.UsageError(
            f"The 'flask auth {command}' command is restricted to non-production environments."
        )


@click.group("auth")
def auth_cli() -> None:
    """Token blacklist and one-time passcode maintenance."""


@auth_cli.command("reap-otps")
@with_appcontext
def reap_otps() -> None:
    """Delete expired one-time passcode records."""
    service = OTPService(settings=current_app.extensions["auth_settings"])
    removed = service.reap_expired()
    click.echo(f"Reaped {removed} expired OTP record(s).")


@auth_cli.command("clear-blacklist")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@with_appcontext
def clear_blacklist(yes: bool) -> None:
    """Drop every blacklisted access and refresh token."""
    _ensure_non_production("clear-blacklist")
    if not yes:
        click.confirm("Revoked tokens will become usable again. Continue?", abort=True)
    current_app.extensions["token_blacklist"].clear()
    LOGGER.warning("blacklist.cleared")
    click.echo("Blacklist cleared.")
