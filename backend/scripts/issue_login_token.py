"""Issue a login link for a member.

Operator tool for support cases and local testing. Prints the login URL;
sending it to the member is up to the operator.

Usage:
    cd backend && python -m scripts.issue_login_token USERNAME [--jump-to /path] [--ttl-minutes 60]
"""

import argparse
import logging
import sys
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.repositories.member_repository import MemberRepository
from token_login.services.login_tokens import build_login_url, issue_login_token

logger = logging.getLogger(__name__)


class UnknownMemberError(Exception):
    """No member with the given username."""


async def issue_for_username(
    db: AsyncSession,
    username: str,
    *,
    jump_to: str | None = None,
    ttl: timedelta | None = None,
) -> str:
    """Create a token for a username and return its login URL.

    Raises:
        UnknownMemberError: If the username does not exist.
    """
    member = await MemberRepository.get_by_username(db, username)
    if member is None:
        raise UnknownMemberError(username)

    plain = await issue_login_token(db, member_id=member.id, jump_to=jump_to, ttl=ttl)
    logger.info("Issued login token for %s", username)
    return build_login_url(plain)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue a member login link.")
    parser.add_argument("username")
    parser.add_argument("--jump-to", default=None, help="Post-login redirect path")
    parser.add_argument("--ttl-minutes", type=int, default=None)
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """CLI entry point: issue against the configured database."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from token_login.core.config import settings

    args = _parse_args(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ttl = timedelta(minutes=args.ttl_minutes) if args.ttl_minutes else None

    engine = create_async_engine(settings.database_url, echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with factory() as session:
            url = await issue_for_username(
                session, args.username, jump_to=args.jump_to, ttl=ttl
            )
            await session.commit()
    except UnknownMemberError:
        logger.error("No member named %s", args.username)
        sys.exit(1)
    finally:
        await engine.dispose()

    print(url)


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
