"""Repository for Member lookups and login bookkeeping."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from token_login.models.member import Member


class MemberRepository:
    """Stateless repository for members table operations.

    All methods are static; no instance state.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, member_id: int) -> Member | None:
        """Fetch a member by primary key.

        Args:
            db: Async database session.
            member_id: Integer primary key.

        Returns:
            Member if found, None otherwise.
        """
        return await db.get(Member, member_id)

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> Member | None:
        """Fetch a member by username (exact match).

        Args:
            db: Async database session.
            username: Login identifier.

        Returns:
            Member if found, None otherwise.
        """
        stmt = select(Member).where(Member.username == username)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        email: str,
        disabled: bool = False,
        login_allowed: bool = True,
    ) -> Member:
        """Create a new member.

        Args:
            db: Async database session.
            username: Unique login identifier.
            email: Contact address.
            disabled: Initial disabled flag.
            login_allowed: Initial login permission.

        Returns:
            Created Member with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If username already exists.
        """
        member = Member(
            username=username,
            email=email,
            disabled=disabled,
            login_allowed=login_allowed,
        )
        db.add(member)
        await db.flush()
        await db.refresh(member)
        return member

    @staticmethod
    async def record_login(db: AsyncSession, member_id: int, *, now: int) -> None:
        """Shift current_login into last_login and stamp the new login.

        Single UPDATE so the previous value is read and written atomically.

        Args:
            db: Async database session.
            member_id: Member that just logged in.
            now: Login instant as epoch seconds.
        """
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(last_login=Member.current_login, current_login=now)
        )
        await db.execute(stmt)
