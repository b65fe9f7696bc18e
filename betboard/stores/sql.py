"""PostgreSQL-backed challenge store (SQLAlchemy async ORM)."""

from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from betboard.base import BetRecord, BetTally, ChallengeRecord, ChallengeStatus, utcnow
from betboard.exceptions import DuplicateBetError
from betboard.logging_config import get_logger
from betboard.models import Bet, Challenge
from betboard.stores.base import ChallengeStore

logger = get_logger(__name__)


def _to_challenge(row: Challenge) -> ChallengeRecord:
    return ChallengeRecord(
        id=row.id,
        creator_id=row.creator_id,
        title=row.title,
        description=row.description,
        media_ref=row.media_ref,
        status=ChallengeStatus(row.status),
        created_at=row.created_at,
        finalized_at=row.finalized_at,
    )


def _to_bet(row: Bet) -> BetRecord:
    return BetRecord(
        id=row.id,
        challenge_id=row.challenge_id,
        bettor_id=row.bettor_id,
        prediction=row.prediction,
        created_at=row.created_at,
    )


class SqlChallengeStore(ChallengeStore):
    """Store bound to one request-scoped AsyncSession.

    ``add_challenge`` commits on its own. ``add_bet`` and
    ``compare_and_set_status`` are meant to run inside ``lock_challenge``,
    whose clean exit commits them together with the row lock release.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_challenge(self, challenge: ChallengeRecord) -> ChallengeRecord:
        row = Challenge(
            id=challenge.id,
            creator_id=challenge.creator_id,
            title=challenge.title,
            description=challenge.description,
            media_ref=challenge.media_ref,
            status=challenge.status.value,
            created_at=challenge.created_at,
            finalized_at=challenge.finalized_at,
        )
        self.session.add(row)
        await self.session.commit()
        return _to_challenge(row)

    async def get_challenge(self, challenge_id: UUID) -> ChallengeRecord | None:
        result = await self.session.execute(
            select(Challenge).where(Challenge.id == challenge_id)
        )
        row = result.scalar_one_or_none()
        return _to_challenge(row) if row else None

    async def list_challenges(
        self,
        status: ChallengeStatus | None = None,
        creator_id: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChallengeRecord], int]:
        query = select(Challenge)
        if status is not None:
            query = query.where(Challenge.status == status.value)
        if creator_id is not None:
            query = query.where(Challenge.creator_id == creator_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        query = query.order_by(Challenge.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return [_to_challenge(row) for row in result.scalars().all()], total

    @asynccontextmanager
    async def lock_challenge(self, challenge_id: UUID) -> AsyncIterator[ChallengeRecord | None]:
        result = await self.session.execute(
            select(Challenge).where(Challenge.id == challenge_id).with_for_update()
        )
        row = result.scalar_one_or_none()
        try:
            yield _to_challenge(row) if row else None
        except Exception:
            await self.session.rollback()
            raise
        await self.session.commit()

    async def compare_and_set_status(
        self,
        challenge_id: UUID,
        expected: ChallengeStatus,
        new: ChallengeStatus,
    ) -> ChallengeRecord | None:
        result = await self.session.execute(
            update(Challenge)
            .where(Challenge.id == challenge_id, Challenge.status == expected.value)
            .values(
                status=new.value,
                finalized_at=utcnow() if new != ChallengeStatus.OPEN else None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None

        refreshed = await self.session.execute(
            select(Challenge)
            .where(Challenge.id == challenge_id)
            .execution_options(populate_existing=True)
        )
        return _to_challenge(refreshed.scalar_one())

    async def add_bet(self, bet: BetRecord) -> BetRecord:
        row = Bet(
            id=bet.id,
            challenge_id=bet.challenge_id,
            bettor_id=bet.bettor_id,
            prediction=bet.prediction,
            created_at=bet.created_at,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(row)
        except IntegrityError as e:
            logger.info(
                "bet_unique_violation",
                challenge_id=str(bet.challenge_id),
                bettor_id=bet.bettor_id,
            )
            raise DuplicateBetError(str(bet.challenge_id), bet.bettor_id) from e
        return _to_bet(row)

    async def get_bet(self, challenge_id: UUID, bettor_id: str) -> BetRecord | None:
        result = await self.session.execute(
            select(Bet).where(Bet.challenge_id == challenge_id, Bet.bettor_id == bettor_id)
        )
        row = result.scalar_one_or_none()
        return _to_bet(row) if row else None

    async def list_bets(self, challenge_id: UUID) -> list[BetRecord]:
        result = await self.session.execute(
            select(Bet).where(Bet.challenge_id == challenge_id).order_by(Bet.created_at.asc())
        )
        return [_to_bet(row) for row in result.scalars().all()]

    async def list_bets_by_bettor(self, bettor_id: str) -> list[BetRecord]:
        result = await self.session.execute(
            select(Bet).where(Bet.bettor_id == bettor_id).order_by(Bet.created_at.desc())
        )
        return [_to_bet(row) for row in result.scalars().all()]

    async def count_bets(self, challenge_id: UUID) -> BetTally:
        result = await self.session.execute(
            select(Bet.prediction, func.count())
            .where(Bet.challenge_id == challenge_id)
            .group_by(Bet.prediction)
        )
        counts = {prediction: count for prediction, count in result.all()}
        return BetTally(
            success_count=counts.get(True, 0),
            failure_count=counts.get(False, 0),
        )
