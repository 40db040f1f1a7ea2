"""Delete expired member login tokens.

Standalone maintenance job. The token login endpoint never deletes expired
tokens on failure, so this is the only path that removes them.

Usage:
    cd backend && python -m scripts.purge_expired_login_tokens
"""

import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.repositories.login_token_repository import LoginTokenRepository

logger = logging.getLogger(__name__)


async def purge_expired_login_tokens(db: AsyncSession, *, now: int | None = None) -> int:
    """Delete tokens whose expiry lies before ``now``.

    The caller owns the transaction and must commit.

    Returns:
        Number of tokens deleted.
    """
    cutoff = int(time.time()) if now is None else now
    deleted = await LoginTokenRepository.delete_expired(db, now=cutoff)
    logger.info("Purged %d expired login tokens", deleted)
    return deleted


async def main() -> None:
    """CLI entry point: purge against the configured database."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from token_login.core.config import settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = create_async_engine(settings.database_url, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        await purge_expired_login_tokens(session)
        await session.commit()

    await engine.dispose()


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
