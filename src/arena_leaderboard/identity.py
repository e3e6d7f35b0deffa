"""Display name directory used to enrich leaderboard entries.

The directory is a denormalized, last-write-wins cache of participant display
names. It is allowed to lag behind the authoritative user store; entries with
no cached name are rendered with :func:`fallback_display_name`.
"""

from collections.abc import Sequence
from typing import Protocol

import redis
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StoreUnavailableError, redis_errors

logger = Logger(child=True)

FALLBACK_PREFIX = "User"
FALLBACK_ID_LENGTH = 6
DISPLAY_NAME_FIELD = "username"

# BatchGetItem accepts at most 100 keys per request
DYNAMODB_BATCH_SIZE = 100


def fallback_display_name(participant_id: str) -> str:
    """Deterministic placeholder name derived from a participant id."""
    return f"{FALLBACK_PREFIX} {participant_id[:FALLBACK_ID_LENGTH]}"


class IdentityDirectory(Protocol):
    """Participant id to display name mapping."""

    def set_display_name(self, participant_id: str, display_name: str) -> None: ...

    def get_display_name(self, participant_id: str) -> str | None: ...

    def get_display_names(self, participant_ids: Sequence[str]) -> list[str | None]: ...


class RedisIdentityDirectory:
    """Stores each display name in a ``{prefix}:{participant_id}`` hash."""

    def __init__(self, client: redis.Redis, key_prefix: str = "userinfo") -> None:
        if not key_prefix:
            raise ValueError("Key prefix must be provided")
        self.redis = client
        self.key_prefix = key_prefix

    def _key(self, participant_id: str) -> str:
        return f"{self.key_prefix}:{participant_id}"

    def set_display_name(self, participant_id: str, display_name: str) -> None:
        with redis_errors("set display name"):
            self.redis.hset(self._key(participant_id), DISPLAY_NAME_FIELD, display_name)

    def get_display_name(self, participant_id: str) -> str | None:
        with redis_errors("get display name"):
            value = self.redis.hget(self._key(participant_id), DISPLAY_NAME_FIELD)
        return self._decode(value)

    def get_display_names(self, participant_ids: Sequence[str]) -> list[str | None]:
        """Resolve many names in a single pipelined round trip."""
        if not participant_ids:
            return []
        with redis_errors("get display names"):
            with self.redis.pipeline(transaction=False) as pipe:
                for participant_id in participant_ids:
                    pipe.hget(self._key(participant_id), DISPLAY_NAME_FIELD)
                values = pipe.execute()
        return [self._decode(value) for value in values]

    def _decode(self, value: str | bytes | None) -> str | None:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value


class DynamoIdentityDirectory:
    """DynamoDB table keyed by ``participant_id``."""

    def __init__(self, table) -> None:
        """Initialize directory with a boto3 DynamoDB Table resource."""
        self.table = table

    def set_display_name(self, participant_id: str, display_name: str) -> None:
        try:
            self.table.put_item(
                Item={"participant_id": participant_id, "display_name": display_name}
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"Failed to set display name: {e}") from e

    def get_display_name(self, participant_id: str) -> str | None:
        try:
            response = self.table.get_item(Key={"participant_id": participant_id})
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"Failed to get display name: {e}") from e

        item = response.get("Item")
        if not item:
            return None
        return str(item["display_name"])

    def get_display_names(self, participant_ids: Sequence[str]) -> list[str | None]:
        """Resolve many names with BatchGetItem, preserving input order."""
        unique_ids = list(dict.fromkeys(participant_ids))
        if not unique_ids:
            return []

        names: dict[str, str] = {}
        table_name = self.table.name
        # the resource client marshals native Python keys and values
        client = self.table.meta.client
        try:
            for offset in range(0, len(unique_ids), DYNAMODB_BATCH_SIZE):
                request = {
                    table_name: {
                        "Keys": [
                            {"participant_id": participant_id}
                            for participant_id in unique_ids[offset : offset + DYNAMODB_BATCH_SIZE]
                        ],
                        "ProjectionExpression": "participant_id, display_name",
                    }
                }
                while request:
                    response = client.batch_get_item(RequestItems=request)
                    for item in response["Responses"].get(table_name, []):
                        names[item["participant_id"]] = str(item["display_name"])
                    request = response.get("UnprocessedKeys") or {}
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(f"Failed to get display names: {e}") from e

        missing = len(unique_ids) - len(names)
        if missing:
            logger.debug("Display names not cached", extra={"missing": missing})
        return [names.get(participant_id) for participant_id in participant_ids]
