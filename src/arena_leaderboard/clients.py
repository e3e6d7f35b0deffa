"""Factories for the backing store clients."""

import boto3
import redis

from .config import Settings, get_settings
from .identity import DynamoIdentityDirectory, IdentityDirectory, RedisIdentityDirectory
from .score_store import RedisScoreStore


def get_redis_client(settings: Settings | None = None) -> redis.Redis:
    """Build a pooled Redis client. No connection is opened until first use."""
    settings = settings or get_settings()
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


def get_dynamodb_table(settings: Settings | None = None):
    """Return the boto3 Table resource for the identity directory."""
    settings = settings or get_settings()
    if not settings.identity_table:
        raise ValueError("Table name must be provided")
    dynamodb = boto3.resource("dynamodb", region_name=settings.aws_default_region)
    return dynamodb.Table(settings.identity_table)


def build_score_store(
    client: redis.Redis, settings: Settings | None = None
) -> RedisScoreStore:
    settings = settings or get_settings()
    return RedisScoreStore(client, key_prefix=settings.leaderboard_key_prefix)


def build_identity_directory(
    client: redis.Redis, settings: Settings | None = None
) -> IdentityDirectory:
    """Select the identity backend configured for this deployment."""
    settings = settings or get_settings()
    if settings.identity_backend == "dynamodb":
        return DynamoIdentityDirectory(get_dynamodb_table(settings))
    return RedisIdentityDirectory(client, key_prefix=settings.identity_key_prefix)
