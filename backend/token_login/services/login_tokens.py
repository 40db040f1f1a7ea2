"""Login token generation and issuance.

Plain tokens go into the emailed link; only their SHA-256 digest is stored.
"""

import hashlib
import secrets
import time
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from token_login.core.config import settings
from token_login.repositories.login_token_repository import LoginTokenRepository

# 32 random bytes -> 43 URL-safe characters
_TOKEN_BYTES = 32


def hash_token(plain: str) -> str:
    """Return the SHA-256 hex digest stored for a plain token."""
    return hashlib.sha256(plain.encode()).hexdigest()


def generate_token() -> tuple[str, str]:
    """Generate a login token and its SHA-256 hash.

    Returns:
        (plain_token, token_hash): plain for the link, hash for DB storage.
    """
    plain = secrets.token_urlsafe(_TOKEN_BYTES)
    return plain, hash_token(plain)


async def issue_login_token(
    db: AsyncSession,
    *,
    member_id: int,
    jump_to: str | None = None,
    ttl: timedelta | None = None,
) -> str:
    """Create a login token for a member.

    The caller owns the transaction and must commit.

    Args:
        db: Async database session.
        member_id: Member the token logs in.
        jump_to: Optional post-login redirect path.
        ttl: Validity period. Defaults to LOGIN_TOKEN_TTL_MINUTES.

    Returns:
        The plain token to embed in the login link.
    """
    plain, token_hash = generate_token()
    lifetime = ttl or timedelta(minutes=settings.login_token_ttl_minutes)
    await LoginTokenRepository.create(
        db,
        member_id=member_id,
        token_hash=token_hash,
        expires=int(time.time() + lifetime.total_seconds()),
        jump_to=jump_to,
    )
    return plain


def build_login_url(plain_token: str) -> str:
    """Absolute URL of the token login endpoint for a plain token."""
    return f"{settings.frontend_url.rstrip('/')}/login/token/{plain_token}"
