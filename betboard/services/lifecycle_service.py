"""LifecycleService: challenge creation, betting, finalization and reads.

Every rule about who may bet, when, and how a challenge closes lives here.
Writes that depend on a check (bet placement, finalization) run inside the
store's per-challenge lock so the check and the write commit together.
"""

from uuid import UUID

from betboard.base import (
    BetRecord,
    BetTally,
    ChallengeRecord,
    ChallengeSnapshot,
    ChallengeStatus,
)
from betboard.config import BetboardSettings, get_settings
from betboard.exceptions import (
    AlreadyFinalizedError,
    ClosedError,
    DuplicateBetError,
    LifecycleError,
    NotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
)
from betboard.logging_config import get_logger
from betboard.services.event_service import CHALLENGES_TOPIC, ChangeFeed, challenge_topic
from betboard.state_machine import TERMINAL_STATES, validate_transition
from betboard.stores.base import ChallengeStore

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


class LifecycleService:
    """Enforces the challenge/bet lifecycle over a ChallengeStore."""

    def __init__(
        self,
        store: ChallengeStore,
        feed: ChangeFeed | None = None,
        settings: BetboardSettings | None = None,
    ):
        self.store = store
        self.feed = feed
        self.settings = settings or get_settings()

    # ==========================================
    # WRITES
    # ==========================================

    async def create_challenge(
        self,
        creator_id: str | None,
        title: str,
        description: str,
        media_ref: str | None = None,
    ) -> ChallengeRecord:
        """Create a new challenge in 'open' status."""
        if not creator_id:
            raise ValidationError("A signed-in creator is required", field="creator_id")

        title = self._required_text(title, "title", self.settings.max_title_length)
        description = self._required_text(
            description, "description", self.settings.max_description_length
        )
        media_ref = media_ref.strip() if media_ref and media_ref.strip() else None

        challenge = await self.store.add_challenge(
            ChallengeRecord(
                creator_id=creator_id,
                title=title,
                description=description,
                media_ref=media_ref,
            )
        )

        logger.info(
            "challenge_created",
            challenge_id=str(challenge.id),
            creator_id=creator_id,
            has_media=media_ref is not None,
        )
        await self._publish(
            CHALLENGES_TOPIC,
            "challenge_created",
            {"challenge_id": str(challenge.id), "status": challenge.status.value},
        )
        return challenge

    async def place_bet(
        self,
        challenge_id: UUID,
        bettor_id: str | None,
        prediction: bool,
    ) -> BetRecord:
        """Place one immutable bet on an open challenge."""
        try:
            if not bettor_id:
                raise UnauthenticatedError("place a bet")
            if not isinstance(prediction, bool):
                raise ValidationError("Prediction must be true or false", field="prediction")

            async with self.store.lock_challenge(challenge_id) as challenge:
                if challenge is None:
                    raise NotFoundError(str(challenge_id))
                if not challenge.is_open:
                    raise ClosedError(str(challenge_id), challenge.status.value)
                if await self.store.get_bet(challenge_id, bettor_id) is not None:
                    raise DuplicateBetError(str(challenge_id), bettor_id)

                bet = await self.store.add_bet(
                    BetRecord(
                        challenge_id=challenge_id,
                        bettor_id=bettor_id,
                        prediction=prediction,
                    )
                )
        except LifecycleError as e:
            logger.info(
                "bet_rejected",
                challenge_id=str(challenge_id),
                bettor_id=bettor_id,
                reason=e.error_type,
            )
            raise

        logger.info(
            "bet_placed",
            challenge_id=str(challenge_id),
            bettor_id=bettor_id,
            prediction=prediction,
        )
        await self._publish(
            challenge_topic(challenge_id),
            "bet_placed",
            {
                "challenge_id": str(challenge_id),
                "bet_id": str(bet.id),
                "bettor_id": bettor_id,
                "prediction": prediction,
            },
        )
        return bet

    async def finalize_challenge(
        self,
        challenge_id: UUID,
        acting_user_id: str | None,
        outcome: ChallengeStatus | str,
    ) -> ChallengeRecord:
        """Move an open challenge to its terminal outcome. Creator only."""
        try:
            if not acting_user_id:
                raise UnauthenticatedError("finalize a challenge")
            target = self._parse_outcome(outcome)

            async with self.store.lock_challenge(challenge_id) as challenge:
                if challenge is None:
                    raise NotFoundError(str(challenge_id))
                if challenge.creator_id != acting_user_id:
                    raise UnauthorizedError(acting_user_id, "finalize this challenge")
                if not challenge.is_open:
                    raise AlreadyFinalizedError(str(challenge_id), challenge.status.value)

                validate_transition(challenge.status, target)
                updated = await self.store.compare_and_set_status(
                    challenge_id, ChallengeStatus.OPEN, target
                )
                if updated is None:
                    current = await self.store.get_challenge(challenge_id)
                    current_status = current.status.value if current else "finalized"
                    raise AlreadyFinalizedError(str(challenge_id), current_status)
        except LifecycleError as e:
            logger.info(
                "finalize_rejected",
                challenge_id=str(challenge_id),
                user_id=acting_user_id,
                reason=e.error_type,
            )
            raise

        logger.info(
            "challenge_finalized",
            challenge_id=str(challenge_id),
            outcome=target.value,
        )
        payload = {"challenge_id": str(challenge_id), "status": target.value}
        await self._publish(challenge_topic(challenge_id), "challenge_finalized", payload)
        await self._publish(CHALLENGES_TOPIC, "challenge_finalized", payload)
        return updated

    # ==========================================
    # READS
    # ==========================================

    async def get_challenge(self, challenge_id: UUID) -> ChallengeRecord:
        challenge = await self.store.get_challenge(challenge_id)
        if challenge is None:
            raise NotFoundError(str(challenge_id))
        return challenge

    async def list_challenges(
        self,
        status: ChallengeStatus | str | None = None,
        creator_id: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChallengeRecord], int]:
        """List challenges newest first, optionally filtered by status or creator."""
        if status is not None:
            try:
                status = ChallengeStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown status '{status}'", field="status")
        if offset < 0:
            raise ValidationError("Offset must be non-negative", field="offset")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

        return await self.store.list_challenges(
            status=status, creator_id=creator_id, offset=offset, limit=limit
        )

    async def tally(self, challenge_id: UUID) -> BetTally:
        """Count bets on a challenge by prediction."""
        await self.get_challenge(challenge_id)
        return await self.store.count_bets(challenge_id)

    async def user_bet(self, challenge_id: UUID, user_id: str | None) -> BetRecord | None:
        """The user's bet on the challenge, or None."""
        await self.get_challenge(challenge_id)
        if not user_id:
            return None
        return await self.store.get_bet(challenge_id, user_id)

    async def list_bets(self, challenge_id: UUID) -> list[BetRecord]:
        await self.get_challenge(challenge_id)
        return await self.store.list_bets(challenge_id)

    async def list_user_bets(self, user_id: str | None) -> list[BetRecord]:
        if not user_id:
            raise UnauthenticatedError("list your bets")
        return await self.store.list_bets_by_bettor(user_id)

    async def get_snapshot(
        self,
        challenge_id: UUID,
        user_id: str | None = None,
    ) -> ChallengeSnapshot:
        """Challenge, tally and the caller's bet in one read."""
        challenge = await self.get_challenge(challenge_id)
        tally = await self.store.count_bets(challenge_id)
        user_bet = await self.store.get_bet(challenge_id, user_id) if user_id else None
        return ChallengeSnapshot(challenge=challenge, tally=tally, user_bet=user_bet)

    # ==========================================
    # HELPERS
    # ==========================================

    @staticmethod
    def _required_text(value: str | None, field: str, max_length: int) -> str:
        value = (value or "").strip()
        if not value:
            raise ValidationError(f"{field.capitalize()} must not be empty", field=field)
        if len(value) > max_length:
            raise ValidationError(
                f"{field.capitalize()} must be at most {max_length} characters",
                field=field,
            )
        return value

    @staticmethod
    def _parse_outcome(outcome: ChallengeStatus | str) -> ChallengeStatus:
        try:
            target = ChallengeStatus(outcome)
        except ValueError:
            target = None
        if target not in TERMINAL_STATES:
            allowed = sorted(s.value for s in TERMINAL_STATES)
            raise ValidationError(f"Outcome must be one of {allowed}", field="outcome")
        return target

    async def _publish(self, topic: str, event_type: str, payload: dict) -> None:
        if self.feed is not None:
            await self.feed.publish(topic, event_type, payload)
