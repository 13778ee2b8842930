from __future__ import annotations

from datetime import datetime
from typing import Protocol


class AuthUser(Protocol):
    """Fields of the collaborator-owned user entity the auth core reads."""

    id: int
    email: str
    password_hash: str
    last_auth_change: datetime
    is_verified: bool


class UserDirectory(Protocol):
    """
    Narrow interface to the user-management collaborator.

    Every ``lookup_*`` and mutation raises
    :class:`~authcore.services._shared.errors.NotFoundError` when the user is
    absent, distinguishable from any other failure.
    """

    def lookup_by_email(self, email: str) -> AuthUser: ...

    def lookup_by_id(self, user_id: int) -> AuthUser: ...

    def update_credential(self, user_id: int, new_hash: str) -> AuthUser:
        """Replace the credential hash and advance ``last_auth_change``."""
        ...

    def mark_verified(self, user_id: int) -> AuthUser: ...
