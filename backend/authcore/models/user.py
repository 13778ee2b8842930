"""User model: the identity the auth core authenticates and verifies."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from authcore.core.extensions import db
from authcore.services._shared.hashing import hash_secret, verify_secret

from .base import PKMixin, ReprMixin, TimestampMixin, utcnow

USER_STATUSES = ("unverified", "active", "banned", "deactivated")


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account owned by the user-management side of the service.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Salted one-way hash (write-only setter via ``password``).
    first_name, last_name : str
        Display names.
    status : str
        One of ``unverified``, ``active``, ``banned``, ``deactivated``.
    is_verified : bool
        Set once the account passed OTP verification.
    last_auth_change : datetime
        Advanced on every credential change; embedded in issued tokens so that
        tokens minted before a password change can be told apart.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="unverified")
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_auth_change: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        Index("ix_users_email", "email"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """Hash and set the password, advancing ``last_auth_change``."""
        self.set_password_hash(hash_secret(raw))

    def set_password_hash(self, password_hash: str) -> None:
        """Store an already computed hash and mark the credential change."""
        if not password_hash:
            raise ValueError("Password hash must be a non-empty string.")
        self.password_hash = password_hash
        self.last_auth_change = utcnow()

    def verify_password(self, raw: str) -> bool:
        """Return ``True`` when ``raw`` matches the stored hash."""
        return verify_secret(raw, self.password_hash)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("status")
    def _check_status(self, key: str, value: str) -> str:
        if value not in USER_STATUSES:
            raise ValueError(f"Unknown user status: {value!r}")
        return value
