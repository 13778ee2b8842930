from __future__ import annotations

from datetime import datetime
from typing import Protocol


class OTPSender(Protocol):
    """
    Out-of-band delivery hook for one-time passcodes.

    The plaintext code only ever flows through ``send``; callers never log or
    return it.
    """

    def send(
        self,
        *,
        user_id: int,
        email: str,
        otp_type: str,
        otp: str,
        expires_at: datetime,
    ) -> None: ...
