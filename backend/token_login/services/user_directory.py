"""User directory: resolves member ids and usernames to principals."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.core.security import FrontendUser, Principal
from token_login.models.member import Member
from token_login.repositories.member_repository import MemberRepository


class UserNotFoundError(Exception):
    """No principal exists for the requested identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"User {identifier!r} not found")


class UserDirectory(Protocol):
    """Resolves members and principals for the token login handler."""

    async def get_member(self, member_id: int) -> Member | None:
        """Return the member row for an id, or None."""
        ...

    async def load_user_by_identifier(self, identifier: str) -> Principal:
        """Return the principal for a username.

        Raises:
            UserNotFoundError: If no such user exists.
        """
        ...


class MemberUserDirectory:
    """UserDirectory backed by the members table."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_member(self, member_id: int) -> Member | None:
        return await MemberRepository.get_by_id(self._db, member_id)

    async def load_user_by_identifier(self, identifier: str) -> Principal:
        member = await MemberRepository.get_by_username(self._db, identifier)
        if member is None:
            raise UserNotFoundError(identifier)
        return FrontendUser.from_member(member)
