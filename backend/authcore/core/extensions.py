"""Extension singletons plus the app-scoped auth collaborators (settings, blacklist, limiter, sender)."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app, request
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

log = logging.getLogger(__name__)

# Constraint names the migrations rely on (pk_users, uq_users_email, ...)
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()


def init_app(app: Flask) -> None:
    """Bind the extensions to ``app`` and build its auth collaborators.

    ``app.extensions`` receives ``auth_settings`` (frozen), ``token_blacklist``,
    ``rate_limiter`` and ``otp_sender``; ``redis_client`` too when
    ``REDIS_URL`` is set. An unreachable Redis fails startup.
    """
    from authcore.core.config import AuthSettings
    from authcore.infra.mail.logging_otp_sender import LoggingOTPSender
    from authcore.infra.redis.rate_limiter import RateLimiter

    db.init_app(app)

    # model classes must be registered on the metadata before Alembic inspects it
    from authcore import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    settings = AuthSettings.from_mapping(app.config)
    app.extensions["auth_settings"] = settings

    redis_client: redis.Redis | None = None
    redis_url = app.config.get("REDIS_URL")
    if redis_url:
        redis_client = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError("Failed to connect to Redis") from exc
        app.extensions["redis_client"] = redis_client
    else:
        app.extensions.pop("redis_client", None)

    app.extensions["token_blacklist"] = build_blacklist_store(app, settings)
    app.extensions["rate_limiter"] = RateLimiter(redis_client)
    app.extensions["otp_sender"] = LoggingOTPSender(echo=settings.otp_debug_echo)
    _register_jwt_callbacks()


def build_blacklist_store(app: Flask, settings):
    """Pick the Redis blacklist when ``REDIS_URL`` is set, else the in-process one."""
    from authcore.infra.redis.redis_blacklist_store import RedisTokenBlacklistStore
    from authcore.services._shared.ports import InMemoryBlacklistStore, TokenClass

    ttls = {
        TokenClass.ACCESS: settings.access_expires,
        TokenClass.REFRESH: settings.refresh_expires,
    }
    client = app.extensions.get("redis_client")
    if client is not None:
        return RedisTokenBlacklistStore(client, ttls)
    log.info("blacklist.backend memory")
    return InMemoryBlacklistStore(ttls)


def _bearer_from_header() -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def _register_jwt_callbacks() -> None:
    """Wire revocation and problem+json rendering into flask-jwt-extended."""
    from authcore.core.errors import Unauthorized, problem_response
    from authcore.services._shared.ports import TokenClass

    @jwt.token_in_blocklist_loader
    def _is_revoked(jwt_header, jwt_payload) -> bool:
        # Only access tokens reach protected endpoints via the header.
        token = _bearer_from_header()
        if token is None:
            return False
        store = current_app.extensions["token_blacklist"]
        return bool(store.contains(token, TokenClass(jwt_payload.get("type", "access"))))

    def _reject(message: str):
        err = Unauthorized(message)
        return problem_response(err.to_problem()), err.status_code

    @jwt.unauthorized_loader
    def _missing(reason: str):
        return _reject("Missing bearer token")

    @jwt.invalid_token_loader
    def _invalid(reason: str):
        return _reject("Invalid token")

    @jwt.expired_token_loader
    def _expired(jwt_header, jwt_payload):
        return _reject("Token expired")

    @jwt.revoked_token_loader
    def _revoked(jwt_header, jwt_payload):
        return _reject("Token revoked")
