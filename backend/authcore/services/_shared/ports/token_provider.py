from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Protocol


class TokenProvider(Protocol):
    """
    Port for issuing and decoding signed tokens.

    ``decode`` MUST verify signature, algorithm and expiry, raising
    :class:`~authcore.services._shared.errors.UnauthorizedError` on any failure.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str: ...

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta,
    ) -> str: ...

    def decode(self, token: str) -> dict[str, Any]: ...

    def get_subject(self, claims: dict[str, Any]) -> str: ...

    def get_token_type(self, claims: dict[str, Any]) -> str: ...

    def get_issued_at(self, claims: dict[str, Any]) -> datetime: ...

    def get_expires_at(self, claims: dict[str, Any]) -> datetime: ...
