"""Response construction after a successful login.

Resolves where to send the member, issues the session cookie and redirects.
Only local paths are honoured as redirect targets; anything that could leave
the site falls back to LOGIN_DEFAULT_TARGET_PATH.
"""

import logging
from urllib.parse import urlsplit

from fastapi.responses import RedirectResponse
from starlette.responses import Response

from token_login.core.auth import create_session_jwt, set_auth_cookie
from token_login.core.config import settings
from token_login.core.security import AuthenticatedCredential, RequestContext

logger = logging.getLogger(__name__)


def is_local_path(target: str) -> bool:
    """Whether a redirect target stays on this site.

    Accepts absolute paths like ``/members/welcome?tab=1``. Rejects
    scheme-relative (``//host``), absolute URLs, backslashes and control
    characters, all of which browsers may resolve to another origin.
    """
    if not target.startswith("/") or target.startswith("//"):
        return False
    if "\\" in target or any(ord(ch) < 0x20 for ch in target):
        return False
    parts = urlsplit(target)
    return not parts.scheme and not parts.netloc


class AuthenticationSuccessHandler:
    """Builds the redirect response for a freshly authenticated member."""

    def __init__(self, default_target_path: str | None = None) -> None:
        self._default_target_path = (
            default_target_path or settings.login_default_target_path
        )

    def resolve_target_path(self, requested: str | None) -> str:
        """Return the requested path if local, else the default path."""
        if requested and is_local_path(requested):
            return requested
        if requested:
            logger.warning("Ignoring non-local login redirect target")
        return self._default_target_path

    def on_authentication_success(
        self,
        context: RequestContext,
        credential: AuthenticatedCredential,
    ) -> Response:
        """Issue the session cookie and redirect to the target path.

        Args:
            context: Request context carrying the requested target_path.
            credential: Credential installed by the login.

        Returns:
            303 redirect carrying the session cookie.
        """
        target = self.resolve_target_path(context.target_path)
        session_token = create_session_jwt(
            credential,
            secret=settings.auth_secret.get_secret_value(),
        )
        response = RedirectResponse(url=target, status_code=303)
        set_auth_cookie(response, session_token)
        # Prevent token leakage via Referer header
        response.headers["Referrer-Policy"] = "no-referrer"
        return response
