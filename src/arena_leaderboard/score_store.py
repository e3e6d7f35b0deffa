"""Redis sorted-set operations for leaderboard scores."""

from typing import Protocol

import redis
from aws_lambda_powertools import Logger

from .exceptions import redis_errors
from .models import KEY_SEPARATOR, LeaderboardKey

logger = Logger(child=True)

RankedScore = tuple[str, float]


class ScoreStore(Protocol):
    """Ordered per-scope score index."""

    def upsert(self, key: LeaderboardKey, participant_id: str, score: float) -> None: ...

    def count(self, key: LeaderboardKey) -> int: ...

    def range_by_rank_descending(
        self, key: LeaderboardKey, start: int, end: int
    ) -> list[RankedScore]: ...

    def rank_of(self, key: LeaderboardKey, participant_id: str) -> int | None: ...

    def score_of(self, key: LeaderboardKey, participant_id: str) -> float | None: ...

    def rank_and_score(
        self, key: LeaderboardKey, participant_id: str
    ) -> tuple[int, float] | None: ...


def _to_member_score(score: float) -> float:
    return -float(score)


def _from_member_score(stored: float) -> float:
    # 0.0 - x keeps a stored 0 from reading back as -0.0
    return 0.0 - float(stored)


class RedisScoreStore:
    """Sorted-set backed score store.

    Scores are stored negated so that ascending ZRANGE/ZRANK order is highest
    score first, and Redis' lexicographic ordering of equal-score members
    breaks ties by ascending participant id.
    """

    def __init__(self, client: redis.Redis, key_prefix: str = "leaderboard") -> None:
        """Initialize store with a Redis client."""
        if not key_prefix:
            raise ValueError("Key prefix must be provided")
        self.redis = client
        self.key_prefix = key_prefix

    def redis_key(self, key: LeaderboardKey) -> str:
        """Build the sorted-set key for a scope."""
        return KEY_SEPARATOR.join((self.key_prefix, str(key)))

    def upsert(self, key: LeaderboardKey, participant_id: str, score: float) -> None:
        """Set the absolute score of a participant within a scope."""
        redis_key = self.redis_key(key)
        # ZADD on a single member is atomic in Redis
        with redis_errors("upsert score"):
            self.redis.zadd(redis_key, {participant_id: _to_member_score(score)})

        logger.debug(
            "Score upserted",
            extra={"leaderboard": redis_key, "participant_id": participant_id, "score": score},
        )

    def count(self, key: LeaderboardKey) -> int:
        """Number of distinct participants in a scope."""
        with redis_errors("count leaderboard"):
            return int(self.redis.zcard(self.redis_key(key)))

    def range_by_rank_descending(
        self, key: LeaderboardKey, start: int, end: int
    ) -> list[RankedScore]:
        """Entries whose 0-based rank lies in [start, end], highest score first."""
        if start < 0 or end < start:
            return []
        with redis_errors("get leaderboard range"):
            rows = self.redis.zrange(self.redis_key(key), start, end, withscores=True)

        return [
            (self._decode(member), _from_member_score(stored)) for member, stored in rows
        ]

    def rank_of(self, key: LeaderboardKey, participant_id: str) -> int | None:
        """0-based rank of a participant, or None when absent."""
        with redis_errors("get rank"):
            rank = self.redis.zrank(self.redis_key(key), participant_id)
        return None if rank is None else int(rank)

    def score_of(self, key: LeaderboardKey, participant_id: str) -> float | None:
        """Score of a participant, or None when absent."""
        with redis_errors("get score"):
            stored = self.redis.zscore(self.redis_key(key), participant_id)
        return None if stored is None else _from_member_score(stored)

    def rank_and_score(
        self, key: LeaderboardKey, participant_id: str
    ) -> tuple[int, float] | None:
        """Rank and score read in one MULTI/EXEC so they cannot disagree."""
        redis_key = self.redis_key(key)
        with redis_errors("get rank and score"):
            with self.redis.pipeline(transaction=True) as pipe:
                pipe.zrank(redis_key, participant_id)
                pipe.zscore(redis_key, participant_id)
                rank, stored = pipe.execute()

        if rank is None or stored is None:
            return None
        return int(rank), _from_member_score(stored)

    def _decode(self, value: str | bytes) -> str:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value
