"""Unit tests for the in-process blacklist used without Redis."""

from __future__ import annotations

from datetime import timedelta

import pytest
from authcore.services._shared.errors import IntegrityError, ValidationError
from authcore.services._shared.ports import InMemoryBlacklistStore, TokenClass

TTLS = {TokenClass.ACCESS: timedelta(hours=1), TokenClass.REFRESH: timedelta(days=7)}


@pytest.fixture
def store():
    return InMemoryBlacklistStore(TTLS)


def test_insert_is_unique_per_class(store):
    store.add("tok", TokenClass.ACCESS)
    with pytest.raises(IntegrityError):
        store.add("tok", TokenClass.ACCESS)
    store.add("tok", TokenClass.REFRESH)


def test_entries_expire_with_class_ttl(store, freeze_time):
    with freeze_time("2026-01-01 00:00:00") as frozen:
        store.add("a", TokenClass.ACCESS)
        store.add("r", TokenClass.REFRESH)

        frozen.tick(timedelta(minutes=59))
        assert store.contains("a", TokenClass.ACCESS) is True

        frozen.tick(timedelta(minutes=1))
        assert store.contains("a", TokenClass.ACCESS) is False
        assert store.contains("r", TokenClass.REFRESH) is True

        # an expired entry no longer blocks a fresh insert
        store.add("a", TokenClass.ACCESS)


def test_token_class_parse():
    assert TokenClass.parse("refresh") is TokenClass.REFRESH
    assert TokenClass.parse(TokenClass.ACCESS) is TokenClass.ACCESS
    with pytest.raises(ValidationError):
        TokenClass.parse("id_token")
