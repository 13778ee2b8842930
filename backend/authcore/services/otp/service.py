# authcore/services/otp/service.py
from __future__ import annotations

import logging
import secrets

from authcore.core.config import AuthSettings
from authcore.models.otp import OTP_TYPES, OTPRecord
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import UnauthorizedError, ValidationError
from authcore.services._shared.hashing import hash_secret, verify_secret
from authcore.services.otp.dto import IssuedOTP
from authcore.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def numeric_code(length: int) -> str:
    """Uniformly random zero-padded decimal code."""
    return str(secrets.randbelow(10**length)).zfill(length)


class OTPService(BaseService):
    """
    One-time passcode lifecycle: create, verify, use.

    Verification (``verify_otp``) proves possession of the passcode and flags
    the record; consumption (``use_otp``) spends the separate verification
    token to authorize exactly one downstream action. Expired records behave
    exactly like missing ones.
    """

    def __init__(self, *, settings: AuthSettings) -> None:
        super().__init__()
        self.settings = settings

    def create(self, user_id: int, otp_type: str, multi_use: bool = False) -> IssuedOTP:
        """
        Persist a new record for ``user_id`` and return it with the plaintext passcode.

        A verification token is generated too, but only its hash is kept and
        the plaintext is dropped: the token that authorizes a follow-up action
        is re-minted by :meth:`verify_otp`, so it only reaches someone who
        proved the passcode.

        :raises ValidationError: Unknown ``otp_type``.
        """
        self._check_type(otp_type)
        otp = numeric_code(self.settings.otp_length)
        method = self.settings.password_hash_method
        sealed_token = numeric_code(self.settings.verification_token_length)

        with self.rw_uow() as uow:
            record = uow.otps.add(
                OTPRecord(
                    user_id=user_id,
                    otp_type=otp_type,
                    hashed_otp=hash_secret(otp, method=method),
                    hashed_verification_token=hash_secret(sealed_token, method=method),
                    multi_use=bool(multi_use),
                    expires_at=self.now_utc() + self.settings.otp_expires,
                )
            )
        log.info("otp.created otp_id=%s type=%s multi_use=%s", record.id, otp_type, multi_use)
        return IssuedOTP(record=record, otp=otp)

    def verify_otp(self, otp_id: int, otp_type: str, otp: str) -> str:
        """
        Check ``otp``, mark the record verified and return a fresh verification token.

        Does not consume the record. Verifying again re-mints the token, which
        invalidates the one handed out before.

        :raises UnauthorizedError: Missing, expired, used, locked or mismatched.
        """
        now = self.now_utc()
        verification_token = numeric_code(self.settings.verification_token_length)
        with self.rw_uow() as uow:
            record = self._live_record(uow, otp_id, otp_type)
            matched = verify_secret(otp, record.hashed_otp)
            if not matched:
                self._count_failure(uow, record, now)
            elif not uow.otps.mark_verified(
                record,
                now,
                hash_secret(verification_token, method=self.settings.password_hash_method),
            ):
                raise UnauthorizedError("OTP already used")
        # raised outside the unit of work so the failed attempt is committed
        if not matched:
            log.warning("otp.verify_failed otp_id=%s", otp_id)
            raise UnauthorizedError("Invalid OTP")
        return verification_token

    def use_otp(self, otp_id: int, otp_type: str, verification_token: str) -> OTPRecord:
        """
        Spend the verification token and return the record.

        The token only exists after a successful :meth:`verify_otp`. Single-use
        records flip ``is_used`` through a conditional update, so of two
        concurrent callers only one succeeds. Callers MUST compare
        ``record.user_id`` with the user the action targets.

        :raises UnauthorizedError: Missing, expired, used, unverified, locked or mismatched.
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            record = self._live_record(uow, otp_id, otp_type)
            if not record.is_verified:
                raise UnauthorizedError("OTP not verified")
            matched = verify_secret(verification_token, record.hashed_verification_token)
            if not matched:
                self._count_failure(uow, record, now)
            elif not record.multi_use and not uow.otps.consume(record, now):
                raise UnauthorizedError("OTP already used")
        if not matched:
            log.warning("otp.use_failed otp_id=%s", otp_id)
            raise UnauthorizedError("Invalid verification token")
        return record

    def reap_expired(self) -> int:
        """Delete expired records; returns the number removed."""
        with self.rw_uow() as uow:
            removed = uow.otps.reap(self.now_utc())
        log.info("otp.reaped count=%s", removed)
        return removed

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_type(otp_type: str) -> None:
        if otp_type not in OTP_TYPES:
            raise ValidationError("Invalid OTP type")

    def _live_record(self, uow: SQLAlchemyUnitOfWork, otp_id: int, otp_type: str) -> OTPRecord:
        self._check_type(otp_type)
        record = uow.otps.find_live(otp_id, otp_type, self.now_utc())
        if record is None:
            raise UnauthorizedError("Invalid OTP")
        if record.is_used:
            raise UnauthorizedError("OTP already used")
        if record.failed_attempts >= self.settings.otp_max_attempts:
            raise UnauthorizedError("Too many attempts")
        return record

    def _count_failure(self, uow: SQLAlchemyUnitOfWork, record: OTPRecord, now) -> None:
        uow.otps.record_failure(record, now, self.settings.otp_max_attempts)
        if record.failed_attempts >= self.settings.otp_max_attempts:
            log.warning("otp.locked otp_id=%s", record.id)
