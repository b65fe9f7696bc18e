"""Unit tests for the SQL challenge store with a mocked AsyncSession."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from betboard.base import BetRecord, ChallengeRecord, ChallengeStatus
from betboard.exceptions import DuplicateBetError
from betboard.models import Challenge
from betboard.stores.sql import SqlChallengeStore


def _challenge_row(**overrides) -> Challenge:
    values = {
        "id": uuid4(),
        "creator_id": "alice",
        "title": "Run a marathon",
        "description": "Under 4 hours",
        "media_ref": None,
        "status": "open",
        "created_at": datetime.now(timezone.utc),
        "finalized_at": None,
    }
    values.update(overrides)
    return Challenge(**values)


def _result(scalar=None, rowcount=None, rows=None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.rowcount = rowcount
    result.all.return_value = rows or []
    return result


def _savepoint(exit_error: Exception | None = None) -> MagicMock:
    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    if exit_error is not None:
        savepoint.__aexit__ = AsyncMock(side_effect=exit_error)
    else:
        savepoint.__aexit__ = AsyncMock(return_value=False)
    return savepoint


class TestSqlChallengeStore:
    @pytest.mark.asyncio
    async def test_add_challenge_commits(self, db_session):
        store = SqlChallengeStore(db_session)
        record = ChallengeRecord(creator_id="alice", title="T", description="D")

        stored = await store.add_challenge(record)

        db_session.add.assert_called_once()
        db_session.commit.assert_awaited_once()
        assert stored.id == record.id
        assert stored.status == ChallengeStatus.OPEN

    @pytest.mark.asyncio
    async def test_get_challenge_maps_row(self, db_session):
        row = _challenge_row(status="failed", finalized_at=datetime.now(timezone.utc))
        db_session.execute.return_value = _result(scalar=row)

        challenge = await SqlChallengeStore(db_session).get_challenge(row.id)

        assert challenge.id == row.id
        assert challenge.status == ChallengeStatus.FAILED
        assert not challenge.is_open

    @pytest.mark.asyncio
    async def test_get_challenge_missing(self, db_session):
        db_session.execute.return_value = _result(scalar=None)
        assert await SqlChallengeStore(db_session).get_challenge(uuid4()) is None

    @pytest.mark.asyncio
    async def test_lock_commits_on_clean_exit(self, db_session):
        row = _challenge_row()
        db_session.execute.return_value = _result(scalar=row)

        async with SqlChallengeStore(db_session).lock_challenge(row.id) as challenge:
            assert challenge.id == row.id

        db_session.commit.assert_awaited_once()
        db_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lock_rolls_back_on_error(self, db_session):
        db_session.execute.return_value = _result(scalar=None)

        with pytest.raises(RuntimeError):
            async with SqlChallengeStore(db_session).lock_challenge(uuid4()):
                raise RuntimeError("boom")

        db_session.rollback.assert_awaited_once()
        db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_compare_and_set_lost_race(self, db_session):
        db_session.execute.return_value = _result(rowcount=0)

        updated = await SqlChallengeStore(db_session).compare_and_set_status(
            uuid4(), ChallengeStatus.OPEN, ChallengeStatus.COMPLETED
        )

        assert updated is None
        assert db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_compare_and_set_success(self, db_session):
        row = _challenge_row(status="completed", finalized_at=datetime.now(timezone.utc))
        db_session.execute.side_effect = [_result(rowcount=1), _result(scalar=row)]

        updated = await SqlChallengeStore(db_session).compare_and_set_status(
            row.id, ChallengeStatus.OPEN, ChallengeStatus.COMPLETED
        )

        assert updated.status == ChallengeStatus.COMPLETED
        assert updated.finalized_at is not None

    @pytest.mark.asyncio
    async def test_add_bet(self, db_session):
        db_session.begin_nested = MagicMock(return_value=_savepoint())
        bet = BetRecord(challenge_id=uuid4(), bettor_id="bob", prediction=True)

        stored = await SqlChallengeStore(db_session).add_bet(bet)

        assert stored == bet
        db_session.add.assert_called_once()

    @pytest.mark.asyncio
    async def test_add_bet_unique_violation(self, db_session):
        error = IntegrityError("INSERT INTO bets", {}, Exception("uq_bet_challenge_bettor"))
        db_session.begin_nested = MagicMock(return_value=_savepoint(error))
        bet = BetRecord(challenge_id=uuid4(), bettor_id="bob", prediction=False)

        with pytest.raises(DuplicateBetError) as exc_info:
            await SqlChallengeStore(db_session).add_bet(bet)
        assert exc_info.value.bettor_id == "bob"

    @pytest.mark.asyncio
    async def test_count_bets(self, db_session):
        db_session.execute.return_value = _result(rows=[(True, 3), (False, 1)])

        tally = await SqlChallengeStore(db_session).count_bets(uuid4())

        assert (tally.success_count, tally.failure_count, tally.total) == (3, 1, 4)

    @pytest.mark.asyncio
    async def test_count_bets_empty(self, db_session):
        db_session.execute.return_value = _result(rows=[])
        tally = await SqlChallengeStore(db_session).count_bets(uuid4())
        assert tally.total == 0
