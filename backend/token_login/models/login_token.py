"""Login token model - single-use, time-limited member login links.

Tokens are issued out-of-band (e.g. emailed) and consumed exactly once by the
token login endpoint. The token column stores the SHA-256 hex digest of the
plain token, so a database leak does not hand out working login links.
"""

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from token_login.models.base import Base

if TYPE_CHECKING:
    from token_login.models.member import Member


class LoginToken(Base):
    """Single-use login token.

    Never updated in place: created by the issuing flow, then read and
    deleted by the token login handler (or purged once expired).

    Attributes:
        id: Integer primary key.
        token: SHA-256 hex digest of the plain token (unique lookup key).
        member_id: Owning member.
        jump_to: Optional path to redirect to after login.
        expires: Epoch seconds after which the token is invalid.
    """

    __tablename__ = "member_login_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    jump_to: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
    )
    expires: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        index=True,
    )

    member: Mapped["Member"] = relationship("Member", back_populates="login_tokens")
