from authcore.models.otp import OTPRecord
from authcore.models.user import User

__all__ = [
    "OTPRecord",
    "User",
]
