"""One-time passcode records."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, as_utc

if TYPE_CHECKING:
    from .user import User

OTP_TYPES = ("EMAIL", "AUTHENTICATOR")


class OTPRecord(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Issued passcode bound to one user and one delivery channel.

    Only hashes of the passcode and of its verification token are stored. The
    verification token is minted by a successful passcode check; until then the
    column holds the hash of a value nobody was given.

    State machine: ``issued -> verified -> used``. Every wrong passcode or
    token bumps ``failed_attempts``; at ``OTP_MAX_ATTEMPTS`` the record is
    locked and rejects even correct secrets. A record is *live* while
    ``expires_at`` is in the future; expired rows are invisible to lookups and
    removed by ``flask auth reap-otps``.
    """

    __tablename__ = "otp_records"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    otp_type: Mapped[str] = mapped_column(String(40), nullable=False)
    hashed_otp: Mapped[str] = mapped_column(String(254), nullable=False)
    hashed_verification_token: Mapped[str] = mapped_column(String(254), nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    multi_use: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    failed_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship("User", lazy="raise")

    __table_args__ = (
        Index("ix_otp_records_user_type", "user_id", "otp_type"),
        Index("ix_otp_records_expires_at", "expires_at"),
    )

    @validates("otp_type")
    def _check_type(self, key: str, value: str) -> str:
        if value not in OTP_TYPES:
            raise ValueError(f"Unknown OTP type: {value!r}")
        return value

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``now`` reached ``expires_at``."""
        return as_utc(self.expires_at) <= now
