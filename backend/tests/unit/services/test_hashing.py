"""Unit tests for the credential hasher."""

from __future__ import annotations

import pytest
from authcore.services._shared.hashing import hash_secret, verify_secret

FAST = "pbkdf2:sha256:1000"


def test_hash_is_salted_and_verifies():
    first = hash_secret("Secret1", method=FAST)
    second = hash_secret("Secret1", method=FAST)

    assert first != second
    assert "Secret1" not in first
    assert verify_secret("Secret1", first)
    assert verify_secret("Secret1", second)
    assert not verify_secret("secret1", first)


def test_default_method_is_scrypt():
    assert hash_secret("Secret1").startswith("scrypt:")


@pytest.mark.parametrize("plaintext", ["", None, 123])
def test_hash_rejects_empty_or_non_string(plaintext):
    with pytest.raises(ValueError):
        hash_secret(plaintext, method=FAST)


@pytest.mark.parametrize(
    ("plaintext", "hashed"),
    [
        ("", "pbkdf2:sha256:1000$a$b"),
        ("Secret1", ""),
        (None, "pbkdf2:sha256:1000$a$b"),
        ("Secret1", None),
        ("Secret1", "not-a-hash"),
        ("Secret1", "md5$salt$digest"),
    ],
)
def test_verify_never_raises(plaintext, hashed):
    assert verify_secret(plaintext, hashed) is False
