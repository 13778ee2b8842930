"""
Failure kinds raised by the auth services, stores and repositories.

Nothing here knows about Flask or HTTP. The set is closed: every failure the
auth core reports is one of the five kinds below. ``core/errors.py`` renders
them as RFC 7807 through ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy.exc import IntegrityError as DBIntegrityError


def violates(exc: DBIntegrityError, constraint_name: str) -> bool:
    """
    True when the driver message of ``exc`` names ``constraint_name``.

    SQLite names the column rather than the constraint, so callers pass both
    (``uq_users_email`` and ``users.email``).
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    :param message: Client-safe description. Never includes identifiers,
        token contents or stack information.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``kind`` is the stable tag the API layer switches on.
    """

    kind: ClassVar[str] = "error"
    default_message: ClassVar[str] = "Service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# --------------------------------------------------------------------------- #
# Taxonomy
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """Malformed input (bad token class, blank token, unknown OTP type...)."""

    kind = "validation"
    default_message = "Invalid input"


class NotFoundError(ServiceError):
    """
    Raised when a referenced entity is absent.

    :param entity: Entity name (e.g., "User").
    :param key: Identifier or search key; kept for logs, never rendered.
    """

    kind = "not_found"

    def __init__(self, entity: str, key: str | int | None = None) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found")


class UnauthorizedError(ServiceError):
    """A credential, token or OTP proof failed."""

    kind = "unauthorized"
    default_message = "Unauthorized"


class ForbiddenError(ServiceError):
    """The proof is structurally invalid or was explicitly revoked."""

    kind = "forbidden"
    default_message = "Forbidden"


class IntegrityError(ServiceError):
    """Uniqueness or state conflict (e.g. a token blacklisted twice)."""

    kind = "integrity"
    default_message = "Conflict"


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "IntegrityError",
    "violates",
]
