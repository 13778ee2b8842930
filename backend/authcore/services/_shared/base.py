# authcore/services/_shared/base.py
from __future__ import annotations

from datetime import UTC, datetime

from authcore.core import errors as api_errors
from authcore.services._shared.errors import (
    ForbiddenError,
    IntegrityError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    ValidationError,
)
from authcore.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

# Most specific first; anything else deriving from ServiceError is a 400.
_HTTP_ERRORS: tuple[tuple[type[ServiceError], type[api_errors.APIError]], ...] = (
    (ValidationError, api_errors.UnprocessableEntity),
    (NotFoundError, api_errors.NotFound),
    (UnauthorizedError, api_errors.Unauthorized),
    (ForbiddenError, api_errors.Forbidden),
    (IntegrityError, api_errors.Conflict),
)


class BaseService:
    """
    Base class for the auth services.

    Services open a unit of work per operation (:meth:`rw_uow` for writes,
    :meth:`ro_uow` for lookups) and raise :mod:`~authcore.services._shared.errors`
    kinds; the HTTP layer maps those through :meth:`translate_exceptions`.
    """

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork()

    @staticmethod
    def now_utc() -> datetime:
        """Timezone-aware "now"; patched by freezegun in tests."""
        return datetime.now(UTC)

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map a service error to its API error; other exceptions pass through.

        Only ``exc.message`` reaches the client. Identifiers carried on the
        exception (``NotFoundError.key``) stay server-side.
        """
        if not isinstance(exc, ServiceError):
            return exc
        for service_cls, api_cls in _HTTP_ERRORS:
            if isinstance(exc, service_cls):
                return api_cls(exc.message)
        return api_errors.APIError(message=exc.message, status_code=400, code="bad_request")

    def ensure_owner(self, actor_id: int | None, owner_id: int, *, msg: str | None = None) -> None:
        """
        :raises UnauthorizedError: If ``actor_id`` is missing or differs from ``owner_id``.
        """
        if actor_id is None or int(actor_id) != int(owner_id):
            raise UnauthorizedError(msg or "Unauthorized")
