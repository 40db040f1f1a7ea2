"""Member session endpoints.

GET /members/me: who the session cookie belongs to
"""

from fastapi import APIRouter

from token_login.api.deps import SessionClaims
from token_login.core.responses import DataResponse

router = APIRouter()


@router.get("/me")
async def get_me(claims: SessionClaims) -> DataResponse[dict]:
    """Return the authenticated member from the session cookie.

    Returns 401 if no valid session cookie is present.
    """
    return DataResponse(
        data={
            "username": claims["sub"],
            "roles": claims.get("roles", []),
        }
    )
