"""Units of work over the Flask-scoped SQLAlchemy session."""

from __future__ import annotations

from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.orm import Session

from authcore.core.extensions import db
from authcore.repositories import OTPRepository, UserRepository
from authcore.uow.base import UnitOfWork


class _SessionRepositories:
    """``users`` and ``otps`` bound to one session."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.otps = OTPRepository(session=session)


class SQLAlchemyUnitOfWork(_SessionRepositories, UnitOfWork):
    """
    Read-write scope: commits when the block exits cleanly, rolls back otherwise.

    A failing commit is rolled back before the error propagates, so the
    session is reusable by the next operation in the same request.
    """

    def __init__(self) -> None:
        super().__init__(db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(_SessionRepositories, UnitOfWork):
    """
    Lookup scope: any pending ORM write makes the next flush raise.

    The guard is a ``before_flush`` listener attached on entry and detached on
    exit. Conditional ``UPDATE`` statements are not ORM flushes, so they are
    not seen by the guard; use :class:`SQLAlchemyUnitOfWork` for them.
    """

    def __init__(self) -> None:
        super().__init__(db.session)
        self._guarded = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        event.listen(self.session, "before_flush", self._refuse_writes)
        self._guarded = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._guarded:
            return
        with suppress(Exception):
            event.remove(self.session, "before_flush", self._refuse_writes)
        self._guarded = False

    @staticmethod
    def _refuse_writes(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("flush blocked inside a read-only unit of work")

    def commit(self) -> None:
        raise RuntimeError("read-only unit of work cannot commit")

    def rollback(self) -> None:
        self.session.rollback()
