"""OTP record repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update

from authcore.models.otp import OTPRecord
from authcore.repositories.base import BaseRepository


class OTPRepository(BaseRepository[OTPRecord]):
    """Persistence-only repository for :class:`OTPRecord`.

    Lookups filter out expired rows at query time. State transitions are
    conditional ``UPDATE`` statements whose rowcount tells the caller whether
    it won; nothing here raises domain errors.
    """

    model = OTPRecord

    def find_live(self, otp_id: int, otp_type: str, now: datetime) -> OTPRecord | None:
        """Return the unexpired record matching ``otp_id`` and ``otp_type``."""
        stmt = select(OTPRecord).where(
            OTPRecord.id == otp_id,
            OTPRecord.otp_type == otp_type,
            OTPRecord.expires_at > now,
        )
        return cast(OTPRecord | None, self.session.execute(stmt).scalars().first())

    def mark_verified(
        self, record: OTPRecord, now: datetime, hashed_verification_token: str
    ) -> bool:
        """
        Flag a live, unused record verified and store its new token hash.

        Returns ``False`` if the record was consumed or expired meanwhile.
        """
        stmt = (
            update(OTPRecord)
            .where(
                OTPRecord.id == record.id,
                OTPRecord.is_used.is_(False),
                OTPRecord.expires_at > now,
            )
            .values(
                is_verified=True,
                hashed_verification_token=hashed_verification_token,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return self._applied(stmt, record)

    def consume(self, record: OTPRecord, now: datetime) -> bool:
        """
        Flip ``is_used`` from false to true on a live record.

        Exactly one of several concurrent callers gets ``True``.
        """
        stmt = (
            update(OTPRecord)
            .where(
                OTPRecord.id == record.id,
                OTPRecord.is_used.is_(False),
                OTPRecord.expires_at > now,
            )
            .values(is_used=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self._applied(stmt, record)

    def record_failure(self, record: OTPRecord, now: datetime, max_attempts: int) -> None:
        """
        Count one wrong secret against a record still below ``max_attempts``.

        The increment happens in SQL, so concurrent misses are all counted.
        """
        stmt = (
            update(OTPRecord)
            .where(
                OTPRecord.id == record.id,
                OTPRecord.failed_attempts < max_attempts,
            )
            .values(failed_attempts=OTPRecord.failed_attempts + 1, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self._applied(stmt, record)

    def reap(self, now: datetime) -> int:
        """Delete expired records and return how many were removed."""
        stmt = (
            delete(OTPRecord)
            .where(OTPRecord.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def _applied(self, stmt, record: OTPRecord) -> bool:
        won = int(self.session.execute(stmt).rowcount or 0) == 1
        if won:
            # the UPDATE bypassed the identity map
            self.session.refresh(record)
        return won
