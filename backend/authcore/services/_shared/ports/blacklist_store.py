from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Protocol

from authcore.services._shared.errors import IntegrityError, ValidationError


class TokenClass(str, Enum):
    """Revocation partitions; each has its own TTL."""

    ACCESS = "access"
    REFRESH = "refresh"

    @classmethod
    def parse(cls, value: TokenClass | str) -> TokenClass:
        """Coerce ``value`` into a token class or raise :class:`ValidationError`."""
        try:
            return cls(value)
        except ValueError:
            raise ValidationError("Invalid token class") from None


class TokenBlacklistStore(Protocol):
    """
    Append-only revocation set of raw token strings, partitioned per class.

    Implementations MUST make :meth:`add` atomic-unique on ``(token_class, token)``:
    of two concurrent inserts of the same value exactly one succeeds and the
    other raises :class:`IntegrityError`. Entries expire passively once older
    than the validity window of their class.
    """

    def add(self, token: str, token_class: TokenClass) -> None: ...
    def contains(self, token: str, token_class: TokenClass) -> bool: ...
    def clear(self) -> None: ...


class InMemoryBlacklistStore(TokenBlacklistStore):
    """
    Process-local blacklist used in tests and single-process development.

    Expired entries are dropped lazily on access.
    """

    def __init__(self, ttls: Mapping[TokenClass, timedelta]) -> None:
        self._ttls = dict(ttls)
        self._entries: dict[TokenClass, dict[str, datetime]] = {c: {} for c in TokenClass}
        self._lock = threading.Lock()

    def _live(self, token: str, token_class: TokenClass, now: datetime) -> bool:
        created_at = self._entries[token_class].get(token)
        if created_at is None:
            return False
        if now - created_at >= self._ttls[token_class]:
            del self._entries[token_class][token]
            return False
        return True

    def add(self, token: str, token_class: TokenClass) -> None:
        now = datetime.now(UTC)
        with self._lock:
            if self._live(token, token_class, now):
                raise IntegrityError("Token already blacklisted")
            self._entries[token_class][token] = now

    def contains(self, token: str, token_class: TokenClass) -> bool:
        with self._lock:
            return self._live(token, token_class, datetime.now(UTC))

    def clear(self) -> None:
        with self._lock:
            for entries in self._entries.values():
                entries.clear()
