"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authcore.api.deps import json_response, timing
from authcore.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report database and blacklist backend status."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    client = current_app.extensions.get("redis_client")
    if client is None:
        blacklist_status = "memory"
    else:
        try:
            client.ping()
            blacklist_status = "ok"
        except RedisError:
            current_app.logger.exception("healthcheck.redis_error")
            blacklist_status = "fail"

    payload = {
        "status": "ok" if db_status == "ok" and blacklist_status != "fail" else "degraded",
        "db": db_status,
        "blacklist": blacklist_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
