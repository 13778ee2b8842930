"""User repository: the SQLAlchemy side of :class:`UserDirectory`."""

from __future__ import annotations

from sqlalchemy import select

from authcore.models.user import User
from authcore.repositories.base import BaseRepository
from authcore.services._shared.errors import NotFoundError


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Implements the ``UserDirectory`` port: every ``lookup_*`` and mutation
    raises :class:`NotFoundError` when the user is absent. It NEVER handles
    tokens; only DB-level user state.
    """

    model = User

    def _filterable_fields(self):
        return {"email": User.email, "status": User.status}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive), or ``None``."""
        return self.find_one(email=email.lower().strip())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def lookup_by_email(self, email: str) -> User:
        """
        :raises NotFoundError: If no user owns ``email``.
        """
        user = self.get_by_email(email)
        if user is None:
            raise NotFoundError("User", email)
        return user

    def lookup_by_id(self, user_id: int) -> User:
        """
        :raises NotFoundError: If the user does not exist.
        """
        user = self.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    # ---------------------------- Mutations ----------------------------

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: str = "",
        last_name: str = "",
    ) -> User:
        """Insert a new unverified user and flush to obtain its id."""
        user = User(email=email, first_name=first_name, last_name=last_name)
        user.set_password_hash(password_hash)
        return self.add(user)

    def update_credential(self, user_id: int, new_hash: str) -> User:
        """Replace the password hash and advance ``last_auth_change``."""
        user = self.get(user_id, lock=True)
        if user is None:
            raise NotFoundError("User", user_id)
        user.set_password_hash(new_hash)
        self.session.flush()
        return user

    def mark_verified(self, user_id: int) -> User:
        """Flag the account verified and promote ``unverified`` to ``active``."""
        user = self.get(user_id, lock=True)
        if user is None:
            raise NotFoundError("User", user_id)
        user.is_verified = True
        if user.status == "unverified":
            user.status = "active"
        self.session.flush()
        return user
