"""HTTP surface: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def join_prefix(*segments: str) -> str:
    """Join URL segments into ``/a/b``; empty segments are skipped."""
    parts = [s.strip("/") for s in segments if s and s.strip("/")]
    return "/" + "/".join(parts)


def mount(app: Flask, base_prefix: str, entries: Iterable[tuple[Blueprint, str]]) -> None:
    """Register ``(blueprint, relative_prefix)`` pairs beneath ``base_prefix``.

    The computed prefix replaces the blueprint's own ``url_prefix``.
    """
    for bp, rel_prefix in entries:
        app.register_blueprint(bp, url_prefix=join_prefix(base_prefix, rel_prefix))


def init_app(app: Flask) -> None:
    """Mount API v1 (``/api/v1/health``, ``/api/v1/auth/...``)."""
    from authcore.api.v1 import API_VERSION, REGISTRY

    mount(app, join_prefix(app.config.get("API_BASE_PREFIX", "/api"), API_VERSION), REGISTRY)


__all__ = ["init_app", "join_prefix", "mount"]
