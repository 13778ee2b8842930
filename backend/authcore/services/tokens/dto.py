# authcore/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Freshly signed access/refresh pair.

    Timestamps are read back from the signed claims, so they match what a
    verifier will see (whole seconds, UTC).

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param user_id: Subject of both tokens.
    :param access_iat: Access token issue time.
    :param refresh_iat: Refresh token issue time.
    :param access_exp: Access token expiry.
    :param refresh_exp: Refresh token expiry.
    """

    access_token: str
    refresh_token: str
    user_id: int
    access_iat: datetime
    refresh_iat: datetime
    access_exp: datetime
    refresh_exp: datetime
