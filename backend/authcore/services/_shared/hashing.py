"""One-way hashing for passwords and one-time secrets.

Thin wrapper over :mod:`werkzeug.security`: every hash embeds its method and a
fresh random salt, and verification uses a constant-time comparison.
"""

from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

log = logging.getLogger(__name__)

DEFAULT_METHOD = "scrypt"


def hash_secret(plaintext: str, *, method: str = DEFAULT_METHOD) -> str:
    """
    Hash ``plaintext`` with a per-call random salt.

    :param plaintext: Password, passcode or verification token.
    :param method: Werkzeug method string (``"scrypt"``, ``"pbkdf2:sha256:600000"``...).
    :returns: Self-describing hash ``method$salt$digest``.
    :raises ValueError: If ``plaintext`` is empty or not a string.
    """
    if not isinstance(plaintext, str) or not plaintext:
        raise ValueError("Cannot hash an empty secret.")
    return generate_password_hash(plaintext, method=method)


def verify_secret(plaintext: str | None, hashed: str | None) -> bool:
    """
    Check ``plaintext`` against ``hashed`` in constant time.

    Never raises: empty, non-string or malformed inputs simply do not match.
    """
    if not isinstance(plaintext, str) or not isinstance(hashed, str):
        return False
    if not plaintext or not hashed:
        return False
    try:
        return bool(check_password_hash(hashed, plaintext))
    except (ValueError, TypeError):
        # malformed hash string (missing separators, unknown method)
        log.debug("hash.malformed")
        return False
