# authcore/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized downstream).
    :param password: Raw password (to be verified).
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class SignupIn:
    email: str
    password: str
    first_name: str = ""
    last_name: str = ""


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    :param refresh_token: Encoded refresh JWT.
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout. Neither token is verified.

    :param access_token: Encoded access JWT (from the ``Authorization`` header).
    :param refresh_token: Encoded refresh JWT (from the body).
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class OtpRequestIn:
    email: str
    otp_type: str
    multi_use: bool = False


@dataclass(frozen=True, slots=True)
class OtpVerifyIn:
    otp_id: int
    otp_type: str
    otp: str


@dataclass(frozen=True, slots=True)
class OtpUseIn:
    otp_id: int
    otp_type: str
    verification_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class OtpRequestOut:
    """
    Result of an OTP request.

    The passcode itself travels out-of-band and is never part of it.
    """

    otp_id: int
    otp_type: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class OtpVerifyOut:
    """
    Result of a successful passcode check.

    :param verification_token: Spent by the follow-up action (reset, verify account).
    """

    otp_id: int
    verification_token: str


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """Public user representation (never includes hashes or auth stamps)."""

    id: int
    email: str
    first_name: str
    last_name: str
    status: str
    is_verified: bool
    created_at: datetime
