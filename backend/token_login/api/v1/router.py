"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from token_login.api.v1 import members

router = APIRouter()

router.include_router(members.router, prefix="/members", tags=["members"])
