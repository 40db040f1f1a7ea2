"""Principals, credentials and request-scoped security state.

A login turns a resolved Principal into an AuthenticatedCredential and
installs it into the request's SecurityContext. The RequestContext carries
everything the token login handler needs from the HTTP request, so the
handler never touches the framework request object directly.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import Request

from token_login.models import Member

# Authentication context label for credentials issued by the front end
FRONTEND_CONTEXT = "frontend"

ROLE_MEMBER = "ROLE_MEMBER"


@dataclass(frozen=True)
class Principal:
    """An authenticatable identity resolved by a user directory.

    Attributes:
        identifier: Canonical username.
        roles: Granted roles.
    """

    identifier: str
    roles: tuple[str, ...] = ()


@dataclass(frozen=True)
class FrontendUser(Principal):
    """A front-end member principal with its account status fields.

    Attributes:
        member_id: Primary key of the backing member row.
        disabled: Account deactivated.
        login_allowed: Member may log in at all.
        locked_until: Epoch seconds until which the account is locked.
        start: Epoch seconds before which the account is inactive.
        stop: Epoch seconds from which the account is inactive.
    """

    member_id: int = 0
    disabled: bool = False
    login_allowed: bool = True
    locked_until: int = 0
    start: int | None = None
    stop: int | None = None

    @classmethod
    def from_member(cls, member: Member) -> "FrontendUser":
        """Build a principal from a member row.

        Columns left unset on a transient row fall back to their defaults.
        """
        return cls(
            identifier=member.username,
            roles=(ROLE_MEMBER,),
            member_id=member.id,
            disabled=bool(member.disabled),
            login_allowed=member.login_allowed is not False,
            locked_until=member.locked_until or 0,
            start=member.start,
            stop=member.stop,
        )


@dataclass(frozen=True)
class AuthenticatedCredential:
    """Proof of a completed login.

    Attributes:
        user: The authenticated principal.
        roles: Roles granted for this session.
        context: Authentication context label (always "frontend" here).
        authenticated_at: When the credential was created.
    """

    user: Principal
    roles: tuple[str, ...]
    context: str = FRONTEND_CONTEXT
    authenticated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class SecurityContext:
    """Holds the current credential for the remainder of a request.

    Attributes:
        credential: Installed credential, None while anonymous.
    """

    credential: AuthenticatedCredential | None = None

    def install(self, credential: AuthenticatedCredential) -> None:
        """Replace any prior state with the given credential."""
        self.credential = credential

    @property
    def is_authenticated(self) -> bool:
        """True once a credential has been installed."""
        return self.credential is not None


@dataclass
class RequestContext:
    """Request-scoped data passed explicitly into the token login handler.

    Attributes:
        method: HTTP method, upper case.
        request_uri: Path plus query string of the current request.
        host: Host the request was addressed to.
        locale: Preferred language tag from Accept-Language, if any.
        client_host: Remote address, if known.
        security: Security context for this request.
        target_path: Requested post-login redirect target. Set from the
            token's jump_to before login.
    """

    method: str
    request_uri: str
    host: str = ""
    locale: str | None = None
    client_host: str | None = None
    security: SecurityContext = field(default_factory=SecurityContext)
    target_path: str | None = None

    @property
    def is_post(self) -> bool:
        """Whether the request is the state-changing POST step."""
        return self.method.upper() == "POST"

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        """Capture the parts of a Starlette request the handler needs.

        request_uri keeps the path exactly as sent (still percent-encoded),
        so the confirmation form posts back to the same URL.
        """
        raw_path = request.scope.get("raw_path")
        request_uri = raw_path.decode("latin-1") if raw_path else request.url.path
        if request.url.query:
            request_uri = f"{request_uri}?{request.url.query}"

        accept_language = request.headers.get("accept-language", "")
        locale = accept_language.split(",")[0].split(";")[0].strip() or None

        return cls(
            method=request.method.upper(),
            request_uri=request_uri,
            host=request.url.hostname or "",
            locale=locale,
            client_host=request.client.host if request.client else None,
        )
