"""Integration test configuration and fixtures."""

from collections.abc import Generator

import pytest
import redis
from testcontainers.redis import RedisContainer

from src.arena_leaderboard.identity import RedisIdentityDirectory
from src.arena_leaderboard.ingestion import ScoreIngestionService
from src.arena_leaderboard.query import LeaderboardQueryService
from src.arena_leaderboard.score_store import RedisScoreStore


@pytest.fixture(scope="session")
def redis_container() -> Generator[RedisContainer, None, None]:
    """Start a Redis container for integration tests."""
    with RedisContainer(image="redis:7-alpine") as container:
        yield container


@pytest.fixture
def redis_client(redis_container: RedisContainer) -> Generator[redis.Redis, None, None]:
    """Create a Redis client connected to the container, flushed after each test."""
    client = redis.Redis(
        host=redis_container.get_container_host_ip(),
        port=int(redis_container.get_exposed_port(6379)),
        decode_responses=True,
    )
    yield client
    client.flushdb()
    client.close()


@pytest.fixture
def services(redis_client: redis.Redis) -> tuple[LeaderboardQueryService, ScoreIngestionService]:
    """Query and ingestion services sharing one real Redis."""
    store = RedisScoreStore(redis_client)
    identities = RedisIdentityDirectory(redis_client)
    return (
        LeaderboardQueryService(store, identities),
        ScoreIngestionService(store, identities),
    )
