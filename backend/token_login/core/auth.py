"""Session credential helpers: JWT creation, decoding and cookie management.

Pipeline:
- create_session_jwt / set_auth_cookie: issue the session after a login
- decode_session_jwt: verify the cookie on later requests
"""

from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Response

from token_login.core.config import settings
from token_login.core.security import AuthenticatedCredential

_ALGORITHM = "HS256"


def _session_lifetime() -> timedelta:
    return timedelta(minutes=settings.session_lifetime_minutes)


def create_session_jwt(
    credential: AuthenticatedCredential,
    *,
    secret: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT describing an authenticated credential.

    Args:
        credential: Credential produced by a successful login.
        secret: HMAC signing secret.
        expires_delta: Time until expiration. Defaults to the session lifetime.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": credential.user.identifier,
        "roles": list(credential.roles),
        "ctx": credential.context,
        "aud": settings.auth_audience,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or _session_lifetime()),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_session_jwt(token: str, *, secret: str) -> dict:
    """Verify a session JWT and return its claims.

    Args:
        token: Encoded JWT from the session cookie.
        secret: HMAC signing secret.

    Returns:
        Decoded payload.

    Raises:
        jwt.InvalidTokenError: On bad signature, expiry, audience or issuer.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[_ALGORITHM],
        audience=settings.auth_audience,
        issuer=settings.auth_issuer,
    )


def set_auth_cookie(response: Response, token: str) -> None:
    """Set httpOnly JWT cookie on response.

    Security: httpOnly prevents XSS cookie theft. Secure flag and SameSite
    are configured via settings for environment-appropriate security.

    Args:
        response: Response object that will carry the cookie.
        token: JWT token string.
    """
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=settings.auth_cookie_samesite,
        path="/",
        max_age=int(_session_lifetime().total_seconds()),
        domain=settings.auth_cookie_domain or None,
    )
