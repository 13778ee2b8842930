"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from authcore.core.logger import ensure_request_id
from authcore.services._shared.errors import ServiceError

log = logging.getLogger(__name__)


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    """
    problem = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    # Always attach correlation id
    problem["request_id"] = ensure_request_id()
    return problem


def problem_response(problem: dict[str, Any]) -> Response:
    """Return a Flask response with ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier, typically snake_case.
    details : dict[str, Any] | None, optional
        Optional structured payload (e.g., validation messages).
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


# Domain conveniences
class NotFound(APIError):
    """404 when resources are missing."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=HTTPStatus.NOT_FOUND, code="not_found")


class Conflict(APIError):
    """409 for uniqueness/state collisions."""

    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code="conflict")


class Unauthorized(APIError):
    """401 when authentication fails."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code="unauthorized")


class Forbidden(APIError):
    """403 when a proof is revoked or structurally invalid."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=HTTPStatus.FORBIDDEN, code="forbidden")


class UnprocessableEntity(APIError):
    """422 for semantically invalid input."""

    def __init__(self, message: str = "Validation failed") -> None:
        super().__init__(
            message,
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
        )


class TooManyRequests(APIError):
    """429 once a caller exhausts its request budget."""

    def __init__(self, message: str = "Too many requests") -> None:
        super().__init__(
            message,
            status_code=HTTPStatus.TOO_MANY_REQUESTS,
            code="too_many_requests",
        )


def _reply(status: int, message: str, *, code: str | None = None, details=None, exc_info=False):
    """Render and log one problem response; 5xx are errors, the rest warnings."""
    code = code or _http_status_to_code(status)
    problem = _as_problem(status=status, code=code, message=message, details=details)
    level = log.error if status >= 500 else log.warning
    level(
        "problem code=%s status=%s detail=%s request_id=%s",
        code,
        status,
        message,
        problem["request_id"],
        exc_info=exc_info,
    )
    return problem_response(problem), status


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Every handled error renders as RFC 7807 with a ``request_id``.
    - Service errors are translated by ``BaseService.translate_exceptions``;
      their chained cause is logged, never rendered.
    - Database and unexpected errors never leak driver messages.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _reply(err.status_code, err.message, code=err.code, details=err.details or None)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        from authcore.services._shared.base import BaseService

        translated = BaseService().translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover - closed taxonomy
            raise err
        cause = err.__cause__
        log.info(
            "service_error kind=%s cause=%s",
            err.kind,
            type(cause).__name__ if cause is not None else None,
        )
        return handle_api_error(translated)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            # Werkzeug descriptions may carry HTML-ish text
            message = (err.description or _http_status_to_code(status).replace("_", " ")).strip()
        return _reply(status, message)

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        return _reply(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            code="validation_error",
            details={"errors": err.messages},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        return _reply(HTTPStatus.CONFLICT, "Resource conflict", exc_info=True)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        return _reply(HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable", exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return _reply(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error", exc_info=True)
