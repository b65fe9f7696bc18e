"""Challenges and bets tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("creator_id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("media_ref", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="open"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('open','completed','failed')", name="ck_challenge_status"
        ),
        sa.CheckConstraint(
            "(status = 'open') = (finalized_at IS NULL)",
            name="ck_challenge_finalized_at",
        ),
    )
    op.create_index("idx_challenges_status", "challenges", ["status"])
    op.create_index("idx_challenges_creator", "challenges", ["creator_id"])
    op.create_index("idx_challenges_created_at", "challenges", ["created_at"])

    op.create_table(
        "bets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "challenge_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("challenges.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("bettor_id", sa.Text(), nullable=False),
        sa.Column("prediction", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("challenge_id", "bettor_id", name="uq_bet_challenge_bettor"),
    )
    op.create_index("idx_bets_bettor", "bets", ["bettor_id"])


def downgrade() -> None:
    op.drop_index("idx_bets_bettor", table_name="bets")
    op.drop_table("bets")
    op.drop_index("idx_challenges_created_at", table_name="challenges")
    op.drop_index("idx_challenges_creator", table_name="challenges")
    op.drop_index("idx_challenges_status", table_name="challenges")
    op.drop_table("challenges")
