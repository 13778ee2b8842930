"""Generic repository base for SQLAlchemy 2.x.

Repositories only stage and read rows; the unit of work owning the session
decides when to commit.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from authcore.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Persistence helpers shared by the auth repositories.

    Subclasses set ``model`` and may declare ``_filterable_fields`` to
    whitelist the columns accepted by :meth:`find_one`.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """The unit-of-work session, else the Flask-scoped ``db.session``."""
        return self._session if self._session is not None else cast(Session, db.session)

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        return {}

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: int, *, lock: bool = False) -> E | None:
        """Primary-key lookup; ``lock`` adds ``FOR UPDATE`` where the backend has it."""
        stmt = select(self.model).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        if lock:
            stmt = stmt.with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def find_one(self, **filters: Any) -> E | None:
        """First row matching every ``column=value`` pair.

        :raises ValueError: For a column outside ``_filterable_fields``.
        """
        allowed = self._filterable_fields()
        unknown = sorted(set(filters) - set(allowed))
        if unknown:
            raise ValueError(f"Unknown or non-filterable fields: {unknown}")
        stmt = select(self.model).where(*(allowed[k] == v for k, v in filters.items()))
        return cast(E | None, self.session.execute(stmt).scalars().first())
