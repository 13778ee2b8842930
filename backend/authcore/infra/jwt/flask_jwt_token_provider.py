# authcore/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from flask_jwt_extended import create_access_token as _create_access
from flask_jwt_extended import create_refresh_token as _create_refresh
from flask_jwt_extended import decode_token as _decode
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from authcore.services._shared.errors import UnauthorizedError
from authcore.services._shared.ports import TokenProvider

log = logging.getLogger(__name__)


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    Signing key, algorithm and accepted decode algorithms come from the Flask
    config (``JWT_SECRET_KEY`` / ``JWT_PRIVATE_KEY`` / ``JWT_PUBLIC_KEY`` /
    ``JWT_ALGORITHM``).

    .. note::
       Requires an active Flask app context.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str:
        # Flask-JWT-Extended stamps "type": "access", "iat", "exp" and a random "jti".
        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=additional_claims or {},
                expires_delta=expires_delta,
            ),
        )

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str:
        return cast(
            str,
            _create_refresh(
                identity=identity,
                additional_claims=additional_claims or {},
                expires_delta=expires_delta,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature, algorithm and expiry, returning the claims.

        :raises UnauthorizedError: On any verification failure.
        """
        if not isinstance(token, str) or not token:
            raise UnauthorizedError("Invalid token")
        try:
            return cast(dict[str, Any], _decode(token))
        except (PyJWTError, JWTExtendedException) as exc:
            log.info("token.decode_failed reason=%s", type(exc).__name__)
            raise UnauthorizedError("Invalid token") from exc

    def get_subject(self, claims: dict[str, Any]) -> str:
        subject = claims.get("sub")
        if not isinstance(subject, str | int):
            raise UnauthorizedError("Invalid token")
        return str(subject)

    def get_token_type(self, claims: dict[str, Any]) -> str:
        # Flask-JWT-Extended sets "type": "access" | "refresh"
        return str(claims.get("type", ""))

    def get_issued_at(self, claims: dict[str, Any]) -> datetime:
        return datetime.fromtimestamp(int(claims["iat"]), tz=UTC)

    def get_expires_at(self, claims: dict[str, Any]) -> datetime:
        return datetime.fromtimestamp(int(claims["exp"]), tz=UTC)
