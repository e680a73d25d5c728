"""Create user_progression table

Revision ID: 5c2e9a1f7b30
Revises:
Create Date: 2026-10-18 10:12:04.118305

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e9a1f7b30'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the authoritative per-user XP table and its leaderboard index."""
    op.create_table(
        "user_progression",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("total_xp", sa.BigInteger, nullable=False, server_default="0"),
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
        sa.CheckConstraint("total_xp >= 0", name="ck_user_progression_total_xp_non_negative"),
    )
    op.create_index(
        "ix_user_progression_total_xp",
        "user_progression",
        [sa.text("total_xp DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_user_progression_total_xp", table_name="user_progression")
    op.drop_table("user_progression")
