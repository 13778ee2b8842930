"""Application factory for the auth backend."""

from __future__ import annotations

from flask import Flask

from authcore.core.config import BaseConfig, get_config
from authcore.core.logger import configure_logging, init_app as init_logging

_PLACEHOLDER_SECRETS = {"CHANGE_ME", "CHANGE_ME_JWT"}


def _refuse_placeholder_secrets(app: Flask) -> None:
    """Production must not sign sessions or tokens with the shipped defaults."""
    if app.debug or app.testing:
        return
    if app.config.get("SECRET_KEY") in _PLACEHOLDER_SECRETS:
        raise RuntimeError("SECRET_KEY is unset")
    symmetric = str(app.config.get("JWT_ALGORITHM", "HS256")).upper().startswith("HS")
    if symmetric and app.config.get("JWT_SECRET_KEY") in _PLACEHOLDER_SECRETS:
        raise RuntimeError("JWT_SECRET_KEY is unset")


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """
    Build the app: config, JSON logging, extensions, routes, error handlers, CLI.

    ``config`` defaults to the class selected by ``APP_ENV``; an optional
    ``instance/config.py`` is layered on top.
    """
    from authcore import cli
    from authcore.api import init_app as init_api
    from authcore.core import errors, extensions

    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(config if config is not None else get_config())
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    _refuse_placeholder_secrets(app)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))
    extensions.init_app(app)
    init_logging(app)
    init_api(app)
    errors.init_app(app)
    cli.init_app(app)
    return app
