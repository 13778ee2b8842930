# authcore/services/otp/dto.py
from __future__ import annotations

from dataclasses import dataclass

from authcore.models.otp import OTPRecord


@dataclass(frozen=True, slots=True)
class IssuedOTP:
    """
    A freshly created OTP record together with its plaintext passcode.

    The plaintext exists only here; the database keeps a hash. ``otp`` must be
    handed to an out-of-band sender and never logged.

    :param record: Persisted record.
    :param otp: Plaintext passcode.
    """

    record: OTPRecord
    otp: str

    def __repr__(self) -> str:
        return f"IssuedOTP(record={self.record!r})"
