"""Token login: validate a login link token and log its member in.

Flow per request:
    token -> TokenStore lookup -> member
        GET:  render confirmation form (no side effects)
        POST: consume token -> account checks -> install credential
              -> dispatch InteractiveLoginEvent -> success redirect

Failures raise TokenInvalidError, MemberNotFoundError or AccessDeniedError
before any session state is touched.
"""

import logging
import time
from collections.abc import Callable

from fastapi.responses import HTMLResponse
from starlette.responses import Response

from token_login.core.config import settings
from token_login.core.errors import (
    AccessDeniedError,
    MemberNotFoundError,
    TokenInvalidError,
)
from token_login.core.security import (
    FRONTEND_CONTEXT,
    AuthenticatedCredential,
    FrontendUser,
    RequestContext,
)
from token_login.pages.login_entrypoint import login_form_id, render_login_entrypoint
from token_login.services.authentication_success import AuthenticationSuccessHandler
from token_login.services.login_events import (
    InteractiveLoginEvent,
    LoginEventDispatcher,
)
from token_login.services.login_tokens import hash_token
from token_login.services.token_store import TokenStore
from token_login.services.user_checker import AccountStatusError, UserChecker
from token_login.services.user_directory import UserDirectory, UserNotFoundError

logger = logging.getLogger(__name__)


class TokenLoginHandler:
    """Single-use login link handler.

    Stateless between calls; every collaborator is injected so the same
    handler runs against the database or against in-memory stores.
    """

    def __init__(
        self,
        *,
        tokens: TokenStore,
        directory: UserDirectory,
        user_checker: UserChecker,
        dispatcher: LoginEventDispatcher,
        success_handler: AuthenticationSuccessHandler,
        login_label: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tokens = tokens
        self._directory = directory
        self._user_checker = user_checker
        self._dispatcher = dispatcher
        self._success_handler = success_handler
        self._login_label = login_label or settings.login_button_label
        self._clock = clock

    async def handle(self, token: str, context: RequestContext) -> Response:
        """Validate a presented token and show the form or log in.

        Args:
            token: Plain token from the login link.
            context: Request-scoped context.

        Returns:
            HTML confirmation form for non-POST requests, otherwise the
            success handler's redirect.

        Raises:
            TokenInvalidError: Token unknown, expired or consumed concurrently.
            MemberNotFoundError: Token's member no longer exists.
            AccessDeniedError: Member may not log in.
        """
        login_token = await self._tokens.find_valid(
            hash_token(token), int(self._clock())
        )
        if login_token is None:
            logger.error("Token not found or expired: %s", token)
            raise TokenInvalidError()

        member = await self._directory.get_member(login_token.member_id)
        if member is None:
            # Such a token can never succeed; remove it instead of leaving it
            # for the expiry purge.
            await self._tokens.consume(login_token)
            logger.warning("Removed login token of a deleted member")
            raise MemberNotFoundError()

        if not context.is_post:
            return HTMLResponse(
                render_login_entrypoint(
                    login_label=self._login_label,
                    form_id=login_form_id(token),
                    form_action=context.request_uri,
                ),
                headers={"Cache-Control": "no-store"},
            )

        if not await self._tokens.consume(login_token):
            logger.error("Token already consumed: %s", token)
            raise TokenInvalidError()

        context.target_path = login_token.jump_to

        return await self.login(member.username, context)

    async def login(self, username: str, context: RequestContext) -> Response:
        """Authenticate a front-end user by username and build the response.

        Args:
            username: Canonical username of the member.
            context: Request-scoped context; its security context receives
                the credential and its target_path drives the redirect.

        Returns:
            Response from the authentication success handler.

        Raises:
            MemberNotFoundError: Username unknown to the directory.
            AccessDeniedError: Wrong principal kind or account status failure.
        """
        try:
            user = await self._directory.load_user_by_identifier(username)
        except UserNotFoundError as exc:
            raise MemberNotFoundError() from exc

        if not isinstance(user, FrontendUser):
            raise AccessDeniedError()

        try:
            self._user_checker.check_pre_auth(user)
            self._user_checker.check_post_auth(user)
        except AccountStatusError as exc:
            # i.e. account disabled; the reason stays in the server log only
            logger.info("Token login refused for %s: %s", username, exc)
            raise AccessDeniedError() from exc

        credential = AuthenticatedCredential(
            user=user,
            roles=user.roles,
            context=FRONTEND_CONTEXT,
        )
        context.security.install(credential)

        await self._dispatcher.dispatch(InteractiveLoginEvent(context, credential))

        logger.info('User "%s" was logged in automatically', username)

        return self._success_handler.on_authentication_success(context, credential)
