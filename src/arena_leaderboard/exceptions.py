"""Errors raised by the leaderboard core."""

from collections.abc import Iterator
from contextlib import contextmanager

import redis


class LeaderboardError(Exception):
    """Base class for leaderboard failures."""


class InvalidInputError(LeaderboardError, ValueError):
    """Missing or malformed scope, pagination or score parameters."""


class NotFoundError(LeaderboardError):
    """Participant has no record in the requested scope."""

    def __init__(self, participant_id: str, scope: str) -> None:
        super().__init__(f"Participant {participant_id} not found on leaderboard {scope}")
        self.participant_id = participant_id
        self.scope = scope


class StoreUnavailableError(LeaderboardError, RuntimeError):
    """Backing store could not be reached. Safe to retry."""


class StoreCommandError(LeaderboardError, RuntimeError):
    """Backing store was reached but rejected the command."""


@contextmanager
def redis_errors(action: str) -> Iterator[None]:
    """Translate redis-py errors raised while performing ``action``."""
    try:
        yield
    except (redis.ConnectionError, redis.TimeoutError) as e:
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e
    except redis.RedisError as e:
        raise StoreCommandError(f"Failed to {action}: {e}") from e
