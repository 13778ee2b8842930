# authcore/services/auth/service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError as DBIntegrityError

from authcore.core.config import AuthSettings
from authcore.models.base import as_utc
from authcore.models.otp import OTPRecord
from authcore.models.user import User
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import (
    IntegrityError,
    UnauthorizedError,
    ValidationError,
    violates,
)
from authcore.services._shared.hashing import hash_secret, verify_secret
from authcore.services._shared.ports import OTPSender
from authcore.services.auth.dto import (
    LoginIn,
    LogoutIn,
    OtpRequestIn,
    OtpRequestOut,
    OtpUseIn,
    OtpVerifyIn,
    OtpVerifyOut,
    RefreshIn,
    SignupIn,
    UserPublicOut,
)
from authcore.services.otp.service import OTPService
from authcore.services.tokens.dto import TokenPairOut
from authcore.services.tokens.service import TokenService

log = logging.getLogger(__name__)

NOT_PERMITTED = "You're not permitted to carry this out. Request a new OTP"


class AuthService(BaseService):
    """
    Authentication use cases (login / signup / refresh / logout / OTP flows).

    Composes :class:`TokenService` and :class:`OTPService` with the user
    repository; holds no state of its own beyond its collaborators.
    """

    def __init__(
        self,
        *,
        token_service: TokenService,
        otp_service: OTPService,
        otp_sender: OTPSender,
        settings: AuthSettings,
    ) -> None:
        super().__init__()
        self.tokens = token_service
        self.otps = otp_service
        self.sender = otp_sender
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :raises NotFoundError: Unknown email.
        :raises UnauthorizedError: Wrong password.
        """
        with self.ro_uow() as uow:
            user = uow.users.lookup_by_email(dto.email)
            if not verify_secret(dto.password, user.password_hash):
                log.warning("auth.login_failed user_id=%s", user.id)
                raise UnauthorizedError("Invalid credentials")
        log.info("auth.login user_id=%s", user.id)
        return self.tokens.issue(user)

    def signup(self, dto: SignupIn) -> UserPublicOut:
        """
        Create an unverified account.

        :raises IntegrityError: Email already registered.
        :raises ValidationError: Malformed email or empty password.
        """
        try:
            password_hash = hash_secret(dto.password, method=self.settings.password_hash_method)
        except ValueError as exc:
            raise ValidationError("Password is required") from exc

        with self.rw_uow() as uow:
            if uow.users.exists_by_email(dto.email):
                raise IntegrityError("Email already in use")
            try:
                user = uow.users.create_user(
                    email=dto.email,
                    password_hash=password_hash,
                    first_name=dto.first_name,
                    last_name=dto.last_name,
                )
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
            except DBIntegrityError as exc:
                if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                    raise IntegrityError("Email already in use") from exc
                raise
            out = self._public(user)
        log.info("auth.signup user_id=%s", out.id)
        return out

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        return self.tokens.refresh(dto.refresh_token)

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke both tokens of a session.

        :raises ValidationError: Either token is blank.
        :raises IntegrityError: A token was already revoked.
        """
        self.tokens.logout(dto.access_token, dto.refresh_token)

    def whoami(self, user_id: int) -> UserPublicOut:
        with self.ro_uow() as uow:
            return self._public(uow.users.lookup_by_id(user_id))

    # ------------------------------------------------------------------ #
    # OTP flows
    # ------------------------------------------------------------------ #

    def request_otp(self, dto: OtpRequestIn) -> OtpRequestOut:
        """
        Issue a passcode for the account owning ``dto.email``.

        The passcode is handed to the configured sender and never returned;
        neither is the verification token, which only ``verify_otp`` hands out.

        :raises NotFoundError: Unknown email.
        """
        with self.ro_uow() as uow:
            user = uow.users.lookup_by_email(dto.email)
            user_id, email = user.id, user.email

        issued = self.otps.create(user_id, dto.otp_type, dto.multi_use)
        record = issued.record
        expires_at = as_utc(record.expires_at)
        self.sender.send(
            user_id=user_id,
            email=email,
            otp_type=record.otp_type,
            otp=issued.otp,
            expires_at=expires_at,
        )
        return OtpRequestOut(
            otp_id=record.id,
            otp_type=record.otp_type,
            expires_at=expires_at,
        )

    def verify_otp(self, dto: OtpVerifyIn) -> OtpVerifyOut:
        """Prove the passcode; the returned token authorizes one follow-up action."""
        token = self.otps.verify_otp(dto.otp_id, dto.otp_type, dto.otp)
        return OtpVerifyOut(otp_id=dto.otp_id, verification_token=token)

    def use_otp(self, dto: OtpUseIn) -> OTPRecord:
        return self.otps.use_otp(dto.otp_id, dto.otp_type, dto.verification_token)

    def verify_account(self, email: str, otp_record: OTPRecord) -> None:
        """
        Mark the account verified, authorized by a spent OTP.

        :raises UnauthorizedError: OTP owned by another user, or already verified.
        """
        with self.rw_uow() as uow:
            user = uow.users.lookup_by_email(email)
            self.ensure_owner(otp_record.user_id, user.id, msg=NOT_PERMITTED)
            if user.is_verified:
                raise UnauthorizedError("Account already verified")
            uow.users.mark_verified(user.id)
        log.info("auth.account_verified user_id=%s", otp_record.user_id)

    def reset_password(self, email: str, new_password: str, otp_record: OTPRecord) -> None:
        """
        Replace the password, authorized by a spent OTP.

        Advancing ``last_auth_change`` invalidates refresh tokens issued before.

        :raises UnauthorizedError: OTP owned by another user.
        """
        try:
            new_hash = hash_secret(new_password, method=self.settings.password_hash_method)
        except ValueError as exc:
            raise ValidationError("Password is required") from exc

        with self.rw_uow() as uow:
            user = uow.users.lookup_by_email(email)
            self.ensure_owner(otp_record.user_id, user.id, msg=NOT_PERMITTED)
            uow.users.update_credential(user.id, new_hash)
        log.info("auth.password_reset user_id=%s", otp_record.user_id)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _public(user: User) -> UserPublicOut:
        return UserPublicOut(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            status=user.status,
            is_verified=user.is_verified,
            created_at=as_utc(user.created_at),
        )
