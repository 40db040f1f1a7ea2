"""Member model - front-end accounts that can log in via token.

Account status columns mirror the CMS member record: a member may be
disabled, barred from logging in, temporarily locked, or limited to an
activation window (start/stop). Times are epoch seconds.
"""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from token_login.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from token_login.models.login_token import LoginToken


class Member(Base, TimestampMixin):
    """Front-end member account.

    Attributes:
        id: Integer primary key.
        username: Unique login identifier.
        email: Contact address the login link is sent to.
        disabled: Account deactivated by an administrator.
        login_allowed: Whether the member may log in at all.
        locked_until: Epoch seconds until which the account is locked (0 = not locked).
        start: Optional epoch seconds before which the account is not active.
        stop: Optional epoch seconds from which the account is no longer active.
        last_login: Epoch seconds of the previous login.
        current_login: Epoch seconds of the most recent login.
    """

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    disabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
        default=False,
    )
    login_allowed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("true"),
        default=True,
    )
    locked_until: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        server_default=text("0"),
        default=0,
    )
    start: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    stop: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    last_login: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        server_default=text("0"),
        default=0,
    )
    current_login: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        server_default=text("0"),
        default=0,
    )

    login_tokens: Mapped[list["LoginToken"]] = relationship(
        "LoginToken",
        back_populates="member",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
