# authcore/services/tokens/service.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from authcore.core.config import AuthSettings
from authcore.models.base import as_utc
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import (
    ForbiddenError,
    IntegrityError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)
from authcore.services._shared.ports import (
    AuthUser,
    TokenBlacklistStore,
    TokenClass,
    TokenProvider,
)
from authcore.services.tokens.dto import TokenPairOut

log = logging.getLogger(__name__)

LAST_AUTH_CHANGE_CLAIM = "last_auth_change"


def auth_change_stamp(value: datetime) -> str:
    """Canonical claim value for a user's ``last_auth_change``."""
    return as_utc(value).isoformat()


class TokenService(BaseService):
    """
    Issue, rotate and revoke JWT pairs.

    Tokens are stateless; the only server-side state is the blacklist. A
    refresh token is single use: rotating it blacklists it before the new pair
    is signed, so of two concurrent refreshes exactly one wins.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        blacklist: TokenBlacklistStore,
        settings: AuthSettings,
    ) -> None:
        """
        :param token_provider: Adapter for signing/verifying JWTs.
        :param blacklist: Revocation store partitioned by token class.
        :param settings: Lifetimes and refresh policy.
        """
        super().__init__()
        self.tokens = token_provider
        self.store = blacklist
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, user: AuthUser) -> TokenPairOut:
        """
        Sign a new access/refresh pair for ``user``.

        Both tokens carry ``sub`` (string user id) and the user's
        ``last_auth_change``; the provider adds ``type``, ``iat``, ``exp``
        and ``jti``.
        """
        identity = str(user.id)
        claims: dict[str, Any] = {LAST_AUTH_CHANGE_CLAIM: auth_change_stamp(user.last_auth_change)}

        access = self.tokens.create_access_token(
            identity=identity,
            additional_claims=claims,
            expires_delta=self.settings.access_expires,
        )
        refresh = self.tokens.create_refresh_token(
            identity=identity,
            additional_claims=claims,
            expires_delta=self.settings.refresh_expires,
        )

        access_claims = self.tokens.decode(access)
        refresh_claims = self.tokens.decode(refresh)
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            user_id=int(user.id),
            access_iat=self.tokens.get_issued_at(access_claims),
            refresh_iat=self.tokens.get_issued_at(refresh_claims),
            access_exp=self.tokens.get_expires_at(access_claims),
            refresh_exp=self.tokens.get_expires_at(refresh_claims),
        )

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str) -> TokenPairOut:
        """
        Exchange a refresh token for a new pair and revoke the old one.

        Every rejection surfaces as ``UnauthorizedError("Invalid token")``;
        the specific cause is chained on ``__cause__`` for logs and tests.

        :raises UnauthorizedError: On any failure.
        """
        try:
            return self._rotate(refresh_token)
        except ServiceError as exc:
            log.info("token.refresh_rejected kind=%s", exc.kind)
            raise UnauthorizedError("Invalid token") from exc

    def _rotate(self, refresh_token: str) -> TokenPairOut:
        self._require_token(refresh_token)

        if self.store.contains(refresh_token, TokenClass.REFRESH):
            raise ForbiddenError("Token revoked")

        claims = self.tokens.decode(refresh_token)
        if self.tokens.get_token_type(claims) != TokenClass.REFRESH.value:
            raise ForbiddenError("Wrong token type")

        user = self._resolve_subject(claims)

        if self.settings.enforce_last_auth_change:
            stamp = claims.get(LAST_AUTH_CHANGE_CLAIM)
            if stamp != auth_change_stamp(user.last_auth_change):
                raise ForbiddenError("Credentials changed")

        # Claim the old token first; a concurrent loser gets IntegrityError.
        self.store.add(refresh_token, TokenClass.REFRESH)
        return self.issue(user)

    def _resolve_subject(self, claims: dict[str, Any]) -> AuthUser:
        try:
            user_id = int(self.tokens.get_subject(claims))
        except ValueError as exc:
            raise ForbiddenError("Unknown subject") from exc
        try:
            with self.ro_uow() as uow:
                return uow.users.lookup_by_id(user_id)
        except NotFoundError as exc:
            raise ForbiddenError("Unknown subject") from exc

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def blacklist(self, token: str, token_class: TokenClass | str) -> None:
        """
        Revoke ``token`` within ``token_class``.

        :raises ValidationError: Blank token or unknown class.
        :raises IntegrityError: Token already blacklisted for that class.
        """
        klass = TokenClass.parse(token_class)
        self._require_token(token)
        try:
            self.store.add(token, klass)
        except IntegrityError:
            log.warning("token.blacklist_conflict class=%s", klass.value)
            raise

    def is_blacklisted(self, token: str, token_class: TokenClass | str) -> bool:
        klass = TokenClass.parse(token_class)
        if not token:
            return False
        return self.store.contains(token, klass)

    def logout(self, access_token: str, refresh_token: str) -> None:
        """
        Blacklist both tokens without verifying either.

        Both inserts are always attempted; if either was already present the
        call raises after the second attempt.

        :raises IntegrityError: One or both tokens were already blacklisted.
        """
        self._require_token(access_token)
        self._require_token(refresh_token)

        conflicts: list[IntegrityError] = []
        for token, klass in ((access_token, TokenClass.ACCESS), (refresh_token, TokenClass.REFRESH)):
            try:
                self.blacklist(token, klass)
            except IntegrityError as exc:
                conflicts.append(exc)
        if conflicts:
            raise IntegrityError("Token already blacklisted") from conflicts[0]

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _require_token(token: str) -> None:
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("Token is required")
