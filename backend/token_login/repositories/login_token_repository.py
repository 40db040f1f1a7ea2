"""Repository for LoginToken operations.

Single-use login tokens stored as SHA-256 digests with an epoch-second expiry.
Consumption is a conditional DELETE whose affected-row count decides which
request wins when the same token is submitted concurrently.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from token_login.models.login_token import LoginToken


class LoginTokenRepository:
    """Stateless repository for member_login_tokens table operations.

    All methods are static; no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        member_id: int,
        token_hash: str,
        expires: int,
        jump_to: str | None = None,
    ) -> LoginToken:
        """Store a new login token.

        Args:
            db: Async database session.
            member_id: Owning member.
            token_hash: SHA-256 hex digest of the plain token.
            expires: Expiry as epoch seconds.
            jump_to: Optional post-login redirect path.

        Returns:
            Created LoginToken with its id populated.
        """
        login_token = LoginToken(
            member_id=member_id,
            token=token_hash,
            expires=expires,
            jump_to=jump_to,
        )
        db.add(login_token)
        await db.flush()
        return login_token

    @staticmethod
    async def get_valid(
        db: AsyncSession,
        *,
        token_hash: str,
        now: int,
    ) -> LoginToken | None:
        """Look up an unexpired token by digest.

        A token expiring exactly at ``now`` is still valid.

        Args:
            db: Async database session.
            token_hash: SHA-256 hex digest of the presented token.
            now: Validation instant as epoch seconds.

        Returns:
            LoginToken if found and unexpired, None otherwise.
        """
        stmt = select(LoginToken).where(
            LoginToken.token == token_hash,
            LoginToken.expires >= now,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def consume(
        db: AsyncSession,
        *,
        token_id: int,
        token_hash: str,
    ) -> bool:
        """Delete a token if it still exists.

        Concurrent callers racing on the same row serialize on the row lock;
        only the first sees an affected row.

        Args:
            db: Async database session.
            token_id: Primary key of the token row.
            token_hash: Digest the row must still carry.

        Returns:
            True if this call removed the row, False if it was already gone.
        """
        stmt = delete(LoginToken).where(
            LoginToken.id == token_id,
            LoginToken.token == token_hash,
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count == 1

    @staticmethod
    async def delete_expired(db: AsyncSession, *, now: int) -> int:
        """Delete all expired tokens (periodic cleanup).

        Args:
            db: Async database session.
            now: Cut-off as epoch seconds; tokens with expires < now go.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(LoginToken).where(LoginToken.expires < now)
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count
