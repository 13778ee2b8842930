"""Unit of Work commit/rollback semantics on the transactional test session."""

from __future__ import annotations

import pytest
from authcore.models.user import User
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from authcore.uow import SQLAlchemyUnitOfWork as RWuow
from sqlalchemy import select
from tests.factories.user import UserFactory


def _emails(session):
    return set(session.execute(select(User.email)).scalars())


class TestSQLAlchemyUnitOfWork:
    def test_commits_on_success(self, session):
        with RWuow() as uow:
            uow.users.create_user(email="keep@example.com", password_hash="h$a$b")
        assert "keep@example.com" in _emails(session)

    def test_rolls_back_on_error(self, session):
        with pytest.raises(RuntimeError), RWuow() as uow:
            uow.users.create_user(email="drop@example.com", password_hash="h$a$b")
            raise RuntimeError("boom")
        assert "drop@example.com" not in _emails(session)


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_allows_reads(self, session):
        user = UserFactory()
        with ROuow() as uow:
            assert uow.users.lookup_by_id(user.id).email == user.email

    def test_blocks_orm_flush_writes(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()
        session.rollback()

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="cannot commit"):
            uow.commit()
