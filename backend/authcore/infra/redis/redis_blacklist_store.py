from __future__ import annotations

import hashlib
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import cast

import redis  # type: ignore[import-untyped]

from authcore.services._shared.errors import IntegrityError
from authcore.services._shared.ports import TokenBlacklistStore, TokenClass


class RedisTokenBlacklistStore(TokenBlacklistStore):
    """
    Blacklist of revoked token strings, one Redis key per entry.

    Keys carry a SHA-256 digest of the token (never the token itself) and a TTL
    equal to the validity window of the token class, so the set drains on its
    own. ``SET NX`` makes the insert atomic-unique.
    """

    def __init__(self, r: redis.Redis, ttls: Mapping[TokenClass, timedelta]):
        self.r = r
        self.ttls = dict(ttls)

    @staticmethod
    def _k(token: str, token_class: TokenClass) -> str:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return f"bl:{token_class.value}:{digest}"

    def add(self, token: str, token_class: TokenClass) -> None:
        ttl = max(1, int(self.ttls[token_class].total_seconds()))
        created_at = datetime.now(UTC).isoformat()
        stored = self.r.set(self._k(token, token_class), created_at, nx=True, ex=ttl)
        if not stored:
            raise IntegrityError("Token already blacklisted")

    def contains(self, token: str, token_class: TokenClass) -> bool:
        return cast(int, self.r.exists(self._k(token, token_class))) == 1

    def clear(self) -> None:
        keys = list(self.r.scan_iter(match="bl:*"))
        if keys:
            self.r.delete(*keys)
