"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AccountVerifySchema,
    LoginSchema,
    OtpGuardSchema,
    OtpRequestResponseSchema,
    OtpRequestSchema,
    OtpVerifyResponseSchema,
    OtpVerifySchema,
    PasswordResetSchema,
    SignupSchema,
    TokenPairSchema,
    TokenSchema,
)
from .user import UserSchema

__all__ = [
    "AccountVerifySchema",
    "LoginSchema",
    "OtpGuardSchema",
    "OtpRequestResponseSchema",
    "OtpRequestSchema",
    "OtpVerifyResponseSchema",
    "OtpVerifySchema",
    "PasswordResetSchema",
    "SignupSchema",
    "TokenPairSchema",
    "TokenSchema",
    "UserSchema",
]
