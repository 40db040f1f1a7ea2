"""SQLAlchemy ORM models for the token login service.

All models are exported from this module for convenient imports:
    from token_login.models import Member, LoginToken

- member.py: Member (front-end account)
- login_token.py: LoginToken (single-use login link, FK to members)
"""

from token_login.models.base import Base, TimestampMixin
from token_login.models.login_token import LoginToken
from token_login.models.member import Member

__all__ = [
    "Base",
    "TimestampMixin",
    "Member",
    "LoginToken",
]
