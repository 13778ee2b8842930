"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token management, revocation, passcode delivery and user lookup.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: abstraction for JWT creation and decoding.

- :mod:`blacklist_store`:
    Defines :class:`~.TokenBlacklistStore`, :class:`~.TokenClass` and the
    in-memory implementation.

- :mod:`otp_sender`:
    Defines :class:`~.OTPSender`: out-of-band passcode delivery hook.

- :mod:`user_directory`:
    Defines :class:`~.UserDirectory`: the user-management collaborator.

Concrete adapters (Redis, flask-jwt-extended, logging sender) live under
``authcore.infra``; the SQLAlchemy user repository implements the directory.
"""

from __future__ import annotations

from .blacklist_store import InMemoryBlacklistStore, TokenBlacklistStore, TokenClass
from .otp_sender import OTPSender
from .token_provider import TokenProvider
from .user_directory import AuthUser, UserDirectory

__all__ = [
    "TokenProvider",
    "TokenBlacklistStore",
    "TokenClass",
    "InMemoryBlacklistStore",
    "OTPSender",
    "AuthUser",
    "UserDirectory",
]
