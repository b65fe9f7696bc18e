"""SQLAlchemy ORM models for challenges and bets."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import Boolean, DateTime


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class Challenge(Base):
    __tablename__ = "challenges"
    __table_args__ = (
        Index("idx_challenges_status", "status"),
        Index("idx_challenges_creator", "creator_id"),
        Index("idx_challenges_created_at", "created_at"),
        CheckConstraint(
            "status IN ('open','completed','failed')", name="ck_challenge_status"
        ),
        CheckConstraint(
            "(status = 'open') = (finalized_at IS NULL)",
            name="ck_challenge_finalized_at",
        ),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid4
    )
    creator_id: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    media_ref: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'open'")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    bets: Mapped[list["Bet"]] = relationship(back_populates="challenge")


# ---------------------------------------------------------------------------
# Bets
# ---------------------------------------------------------------------------


class Bet(Base):
    __tablename__ = "bets"
    __table_args__ = (
        UniqueConstraint("challenge_id", "bettor_id", name="uq_bet_challenge_bettor"),
        Index("idx_bets_bettor", "bettor_id"),
    )

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid4
    )
    challenge_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("challenges.id", ondelete="CASCADE"),
        nullable=False,
    )
    bettor_id: Mapped[str] = mapped_column(Text, nullable=False)
    prediction: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()"), nullable=False
    )

    challenge: Mapped["Challenge"] = relationship(back_populates="bets")
