"""API error classes.

WHY CUSTOM ERROR CLASSES:
- Consistent error response format across all endpoints
- Easy to map to HTTP status codes in exception handlers
- Type-safe error handling in services/repositories

Token login failures deliberately share vague messages. A caller must not be
able to tell "token expired" from "member deleted" from "account disabled".
"""

_ACCESS_DENIED_MSG = "Access denied"
_UNKNOWN_IDENTITY_MSG = "Unknown identity"


class APIError(Exception):
    """Base class for API errors.

    All API errors have a code, message, and HTTP status.
    Subclasses set default status_code.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class UnauthorizedError(APIError):
    """Authentication required (401).

    Use when no valid session credential is provided.
    """

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class AccessDeniedError(APIError):
    """Principal may not log in (403).

    Raised when the resolved principal is of the wrong kind or an account
    status check fails. The message never names the failing check.
    """

    def __init__(self, message: str = _ACCESS_DENIED_MSG) -> None:
        super().__init__(
            code="ACCESS_DENIED",
            message=message,
            status_code=403,
        )


class TokenInvalidError(AccessDeniedError):
    """Login token is unknown, expired or already consumed (403).

    Rendered exactly like AccessDeniedError so the response does not reveal
    which of the three applied. The raw token is logged, never returned.
    """

    def __init__(self) -> None:
        super().__init__(_ACCESS_DENIED_MSG)


class MemberNotFoundError(APIError):
    """Member behind a token or username does not exist (404).

    WHY NOT INCLUDE THE ID:
    - Internal member ids must not leak to anonymous callers
    - From the visitor's perspective the identity is simply unknown
    """

    def __init__(self) -> None:
        super().__init__(
            code="NOT_FOUND",
            message=_UNKNOWN_IDENTITY_MSG,
            status_code=404,
        )
