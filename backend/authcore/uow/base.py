"""
Transactional boundary shared by the auth services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authcore.repositories import OTPRepository, UserRepository


class UnitOfWork(ABC):
    """
    One transaction spanning the user and OTP repositories.

    ``users`` also serves as the user-directory collaborator: its ``lookup_*``
    and mutation methods raise ``NotFoundError`` for absent users. Leaving the
    ``with`` block normally commits; an exception rolls back.
    """

    users: UserRepository
    otps: OTPRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
