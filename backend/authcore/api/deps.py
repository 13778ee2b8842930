"""Shared API helpers for request parsing, auth guards and service wiring."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from authcore.core.config import AuthSettings
from authcore.core.errors import TooManyRequests
from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.infra.redis.rate_limiter import RateLimiter
from authcore.schemas import OtpGuardSchema
from authcore.services._shared.ports import OTPSender, TokenBlacklistStore
from authcore.services.auth.dto import OtpUseIn
from authcore.services.auth.service import AuthService
from authcore.services.otp.service import OTPService
from authcore.services.tokens.service import TokenService

F = TypeVar("F", bound=Callable[..., Any])


# ------------------------------ Service wiring ------------------------------


def get_settings() -> AuthSettings:
    return cast(AuthSettings, current_app.extensions["auth_settings"])


def get_blacklist() -> TokenBlacklistStore:
    return cast(TokenBlacklistStore, current_app.extensions["token_blacklist"])


def get_otp_sender() -> OTPSender:
    return cast(OTPSender, current_app.extensions["otp_sender"])


def get_rate_limiter() -> RateLimiter:
    return cast(RateLimiter, current_app.extensions["rate_limiter"])


def build_token_service() -> TokenService:
    return TokenService(
        token_provider=JWTTokenProvider(),
        blacklist=get_blacklist(),
        settings=get_settings(),
    )


def build_auth_service() -> AuthService:
    """Compose the orchestrator from the app-scoped settings and stores."""
    settings = get_settings()
    return AuthService(
        token_service=build_token_service(),
        otp_service=OTPService(settings=settings),
        otp_sender=get_otp_sender(),
        settings=settings,
    )


# ------------------------------ Request helpers ------------------------------


def request_json() -> dict[str, Any]:
    return cast(dict[str, Any], request.get_json(silent=True) or {})


def bearer_token() -> str:
    """
    Return the raw ``Authorization: Bearer`` value without verifying it.

    An empty string means the header is absent or not a bearer credential.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return value.strip()


def require_auth(func: F) -> F:
    """Ensure the request carries a valid, unrevoked access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        g.user_id = int(get_jwt_identity())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def rate_limited(scope: str, config_key: str, *, body_field: str | None = None) -> Callable[[F], F]:
    """
    Throttle a view per client address.

    ``config_key`` names the per-window budget; the window itself is
    ``RATELIMIT_WINDOW_SECONDS``. With ``body_field`` the same budget also
    applies per value of that JSON field, so rotating addresses does not buy
    more attempts against one target. Disabled when ``RATELIMIT_ENABLED`` is off.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            config = current_app.config
            if config.get("RATELIMIT_ENABLED", True):
                keys = [f"rl:{scope}:ip:{request.remote_addr or 'unknown'}"]
                if body_field is not None:
                    value = request_json().get(body_field)
                    if isinstance(value, (str, int)) and not isinstance(value, bool):
                        keys.append(f"rl:{scope}:{body_field}:{value}")
                limiter = get_rate_limiter()
                limit = int(config[config_key])
                window = int(config["RATELIMIT_WINDOW_SECONDS"])
                # every bucket is charged, even once one has refused
                verdicts = [limiter.allow(key, limit=limit, per_seconds=window) for key in keys]
                if not all(verdicts):
                    current_app.logger.warning(
                        "ratelimit.blocked", extra={"scope": scope, "remote_addr": request.remote_addr}
                    )
                    raise TooManyRequests()
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def require_otp(schema: OtpGuardSchema) -> Callable[[F], F]:
    """
    Validate the body with ``schema``, then spend the OTP proof it carries.

    The whole payload is validated before the proof is spent, so a malformed
    request never burns a single-use code. The loaded payload is exposed as
    ``g.payload`` and the consumed record as ``g.otp_record``; the view MUST
    check that the record's ``user_id`` matches the account it acts upon.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            payload = schema.load(request_json())
            g.payload = payload
            g.otp_record = build_auth_service().use_otp(
                OtpUseIn(
                    otp_id=payload["otp_id"],
                    otp_type=payload["otp_type"],
                    verification_token=payload["verification_token"],
                )
            )
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
