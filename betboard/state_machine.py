"""Challenge lifecycle state machine.

States: open → completed | failed. Both outcomes are terminal.
"""

from betboard.base import ChallengeStatus

VALID_TRANSITIONS: dict[ChallengeStatus, list[ChallengeStatus]] = {
    ChallengeStatus.OPEN: [ChallengeStatus.COMPLETED, ChallengeStatus.FAILED],
    ChallengeStatus.COMPLETED: [],  # terminal
    ChallengeStatus.FAILED: [],  # terminal
}

TERMINAL_STATES: frozenset[ChallengeStatus] = frozenset(
    state for state, targets in VALID_TRANSITIONS.items() if not targets
)


class ChallengeStateError(Exception):
    """Raised when an invalid challenge state transition is attempted."""

    def __init__(self, current: ChallengeStatus, target: ChallengeStatus):
        allowed = [s.value for s in VALID_TRANSITIONS.get(current, [])]
        super().__init__(
            f"Cannot transition challenge from '{current.value}' to '{target.value}'. "
            f"Allowed from '{current.value}': {allowed}"
        )
        self.current = current
        self.target = target


def can_transition(current: ChallengeStatus | str, target: ChallengeStatus | str) -> bool:
    """Check if a challenge state transition is valid."""
    try:
        current, target = ChallengeStatus(current), ChallengeStatus(target)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS[current]


def validate_transition(current: ChallengeStatus | str, target: ChallengeStatus | str) -> None:
    """Validate a challenge state transition, raising ChallengeStateError if invalid."""
    if not can_transition(current, target):
        raise ChallengeStateError(ChallengeStatus(current), ChallengeStatus(target))


def is_terminal(status: ChallengeStatus | str) -> bool:
    """Whether no further transition is possible from ``status``."""
    return ChallengeStatus(status) in TERMINAL_STATES
