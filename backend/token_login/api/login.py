"""Front-end login link endpoint.

GET  /login/token/{token}: confirmation form, token left intact
POST /login/token/{token}: consume token, log the member in, redirect

Only GET and POST are routed; other methods get 405 from the router.
"""

from fastapi import APIRouter, Request
from starlette.responses import Response

from token_login.api.deps import TokenLogin
from token_login.core.config import settings
from token_login.core.rate_limiting import limiter
from token_login.core.security import RequestContext

router = APIRouter()


@router.api_route("/token/{token}", methods=["GET", "POST"])
@limiter.limit(settings.rate_limit_token_login)
async def token_login(
    request: Request,
    token: str,
    handler: TokenLogin,
) -> Response:
    """Validate a login link and, on POST, log its member in.

    Rate limit: RATE_LIMIT_TOKEN_LOGIN per IP.
    """
    return await handler.handle(token, RequestContext.from_request(request))
