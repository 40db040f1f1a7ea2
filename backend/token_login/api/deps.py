"""Shared dependencies for API endpoints.

WHY DEPENDENCY INJECTION:
- The token login handler is assembled per request around the request's
  database session
- Tests swap the whole handler for one wired to in-memory stores
"""

from typing import Annotated

import jwt
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from token_login.core.auth import decode_session_jwt
from token_login.core.config import settings
from token_login.core.database import get_db
from token_login.core.errors import UnauthorizedError
from token_login.services.authentication_success import AuthenticationSuccessHandler
from token_login.services.login_events import (
    LoginEventDispatcher,
    LoginTimestampListener,
    log_interactive_login,
)
from token_login.services.token_login import TokenLoginHandler
from token_login.services.token_store import SqlTokenStore
from token_login.services.user_checker import UserChecker
from token_login.services.user_directory import MemberUserDirectory

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_login_event_dispatcher(db: DbSession) -> LoginEventDispatcher:
    """Dispatcher with the default interactive-login listeners."""
    dispatcher = LoginEventDispatcher()
    dispatcher.add_listener(LoginTimestampListener(db))
    dispatcher.add_listener(log_interactive_login)
    return dispatcher


def get_token_login_handler(
    db: DbSession,
    dispatcher: Annotated[LoginEventDispatcher, Depends(get_login_event_dispatcher)],
) -> TokenLoginHandler:
    """Token login handler bound to the request's database session."""
    return TokenLoginHandler(
        tokens=SqlTokenStore(db),
        directory=MemberUserDirectory(db),
        user_checker=UserChecker(),
        dispatcher=dispatcher,
        success_handler=AuthenticationSuccessHandler(),
    )


def get_session_claims(request: Request) -> dict:
    """Claims of the session cookie issued by a token login.

    Validation steps:
    1. Read JWT from cookie
    2. Decode + verify signature (HS256)
    3. Verify exp, aud, iss claims
    4. Require a sub claim

    Raises:
        UnauthorizedError: 401 for any session failure. The message never
            says which step failed.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise UnauthorizedError()

    try:
        payload = decode_session_jwt(
            token, secret=settings.auth_secret.get_secret_value()
        )
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError() from exc

    if not payload.get("sub"):
        raise UnauthorizedError()

    return payload


# Reusable type aliases for dependency injection
SessionClaims = Annotated[dict, Depends(get_session_claims)]
TokenLogin = Annotated[TokenLoginHandler, Depends(get_token_login_handler)]
