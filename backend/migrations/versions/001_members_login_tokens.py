"""Create members and member_login_tokens tables.

Revision ID: 001_members_login_tokens
Revises:
Create Date: 2026-10-18

- members: front-end accounts with account status columns (epoch seconds)
- member_login_tokens: single-use login links, token stored as SHA-256 digest
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_members_login_tokens"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "disabled", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column(
            "login_allowed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "locked_until", sa.BigInteger(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("start", sa.BigInteger(), nullable=True),
        sa.Column("stop", sa.BigInteger(), nullable=True),
        sa.Column(
            "last_login", sa.BigInteger(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "current_login",
            sa.BigInteger(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("username", name="uq_members_username"),
    )

    op.create_table(
        "member_login_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column(
            "member_id",
            sa.Integer(),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("jump_to", sa.String(2048), nullable=True),
        sa.Column("expires", sa.BigInteger(), nullable=False),
        sa.UniqueConstraint("token", name="uq_member_login_tokens_token"),
    )
    op.create_index(
        "ix_member_login_tokens_member_id", "member_login_tokens", ["member_id"]
    )
    # Supports the expiry purge
    op.create_index(
        "ix_member_login_tokens_expires", "member_login_tokens", ["expires"]
    )


def downgrade() -> None:
    op.drop_index("ix_member_login_tokens_expires", table_name="member_login_tokens")
    op.drop_index(
        "ix_member_login_tokens_member_id", table_name="member_login_tokens"
    )
    op.drop_table("member_login_tokens")
    op.drop_table("members")
