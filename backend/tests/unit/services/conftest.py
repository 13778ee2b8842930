"""Service fixtures wired to in-memory doubles."""

from __future__ import annotations

import pytest
from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.services._shared.ports import InMemoryBlacklistStore, TokenClass
from authcore.services.auth.service import AuthService
from authcore.services.otp.service import OTPService
from authcore.services.tokens.service import TokenService
from tests.helpers.otp import RecordingOTPSender


@pytest.fixture()
def blacklist(settings):
    return InMemoryBlacklistStore(
        {TokenClass.ACCESS: settings.access_expires, TokenClass.REFRESH: settings.refresh_expires}
    )


@pytest.fixture()
def token_service(settings, blacklist):
    return TokenService(token_provider=JWTTokenProvider(), blacklist=blacklist, settings=settings)


@pytest.fixture()
def otp_service(settings):
    return OTPService(settings=settings)


@pytest.fixture()
def sender():
    return RecordingOTPSender()


@pytest.fixture()
def auth_service(settings, token_service, otp_service, sender):
    return AuthService(
        token_service=token_service,
        otp_service=otp_service,
        otp_sender=sender,
        settings=settings,
    )
