"""Unit tests for blueprint mounting helpers."""

from __future__ import annotations

import pytest
from authcore.api import join_prefix


@pytest.mark.parametrize(
    ("segments", "expected"),
    [
        (("/api", "v1"), "/api/v1"),
        (("/api/", "/v1/", ""), "/api/v1"),
        (("/api/v1", "/auth"), "/api/v1/auth"),
        (("", "/"), "/"),
    ],
)
def test_join_prefix(segments, expected):
    assert join_prefix(*segments) == expected


def test_routes_are_mounted_under_versioned_prefix(app):
    rules = {r.rule for r in app.url_map.iter_rules()}
    assert "/api/v1/health" in rules
    assert "/api/v1/auth/login" in rules
    assert "/api/v1/auth/password/reset" in rules
