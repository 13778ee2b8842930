"""Service error translation into RFC 7807 problems."""

from __future__ import annotations

import pytest
from authcore.core import errors as api_errors
from authcore.services._shared.base import BaseService
from authcore.services._shared.errors import (
    ForbiddenError,
    IntegrityError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("exc", "expected", "status"),
    [
        (ValidationError("bad"), api_errors.UnprocessableEntity, 422),
        (NotFoundError("User", "a@x.com"), api_errors.NotFound, 404),
        (UnauthorizedError("nope"), api_errors.Unauthorized, 401),
        (ForbiddenError("blocked"), api_errors.Forbidden, 403),
        (IntegrityError("dup"), api_errors.Conflict, 409),
        (ServiceError("other"), api_errors.APIError, 400),
    ],
)
def test_translate_exceptions(exc, expected, status):
    translated = BaseService().translate_exceptions(exc)
    assert type(translated) is expected
    assert translated.status_code == status
    assert translated.message == exc.message


def test_not_found_hides_lookup_key():
    translated = BaseService().translate_exceptions(NotFoundError("User", "a@x.com"))
    assert "a@x.com" not in translated.message


def test_non_service_errors_pass_through():
    exc = RuntimeError("boom")
    assert BaseService().translate_exceptions(exc) is exc


def test_unknown_route_is_problem_json(client):
    resp = client.get("/api/v1/nowhere")
    assert resp.status_code == 404
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["code"] == "not_found"
    assert body["request_id"]
