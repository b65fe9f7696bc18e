"""Challenge store backends."""

from betboard.stores.base import ChallengeStore
from betboard.stores.memory import InMemoryChallengeStore
from betboard.stores.sql import SqlChallengeStore

STORE_BACKENDS = ("postgres", "memory")

__all__ = [
    "ChallengeStore",
    "InMemoryChallengeStore",
    "SqlChallengeStore",
    "STORE_BACKENDS",
]
