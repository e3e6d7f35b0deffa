"""Lambda handlers for the leaderboard service."""

import json
from typing import Any

from aws_lambda_powertools import Logger
from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response, content_types
from aws_lambda_powertools.event_handler.exceptions import (
    BadRequestError,
    NotFoundError as HttpNotFoundError,
    ServiceError,
)
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from .clients import build_identity_directory, build_score_store, get_redis_client
from .config import get_settings
from .events import TournamentCompletedEvent, record_tournament_results
from .exceptions import InvalidInputError, NotFoundError, StoreCommandError, StoreUnavailableError
from .ingestion import ScoreIngestionService
from .models import DisplayNameUpdate, ScoreSubmission
from .query import LeaderboardQueryService

logger = Logger()
app = APIGatewayRestResolver()

settings = get_settings()
redis_client = get_redis_client(settings)
store = build_score_store(redis_client, settings)
identities = build_identity_directory(redis_client, settings)
query_service = LeaderboardQueryService(
    store,
    identities,
    max_page_size=settings.max_page_size,
    max_surrounding_count=settings.max_surrounding_count,
)
ingestion_service = ScoreIngestionService(store, identities)


def _required_query_value(name: str) -> str:
    value = app.current_event.get_query_string_value(name)
    if not value:
        raise BadRequestError(f"Missing required query parameter: {name}")
    return value


def _int_query_value(name: str, default: int) -> int:
    value = app.current_event.get_query_string_value(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as ve:
        raise BadRequestError(f"Invalid {name}: must be an integer") from ve


@app.exception_handler(StoreCommandError)
def handle_store_command_error(e: StoreCommandError) -> Response:
    logger.error("Leaderboard store rejected command", extra={"error": str(e)})
    return Response(
        status_code=500,
        content_type=content_types.APPLICATION_JSON,
        body=json.dumps({"statusCode": 500, "message": "Internal server error"}),
    )


@app.get("/leaderboard/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return query_service.health_check()


@app.get("/leaderboard/leaderboards/v1/<game_name>")
def get_leaderboard(game_name: str) -> dict[str, Any]:
    """Get one page of a leaderboard."""
    metric = _required_query_value("metric")
    period = _required_query_value("period")
    page = _int_query_value("page", 1)
    page_size = _int_query_value("limit", settings.default_page_size)

    logger.info(
        "Leaderboard request",
        extra={"game_name": game_name, "metric": metric, "period": period, "page": page},
    )

    try:
        response = query_service.get_page(game_name, metric, period, page, page_size)
    except InvalidInputError as e:
        logger.warning("Invalid leaderboard request", extra={"error": str(e)})
        raise BadRequestError(str(e)) from e
    except StoreUnavailableError as e:
        logger.error("Leaderboard store unavailable", extra={"error": str(e)})
        raise ServiceError(503, "Leaderboard temporarily unavailable") from e

    logger.info(
        "Leaderboard retrieved successfully",
        extra={"game_name": game_name, "entries_count": len(response.entries)},
    )
    return response.model_dump(mode="json", by_alias=True)


@app.get("/leaderboard/leaderboards/v1/<game_name>/users/<participant_id>")
def get_user_rank(game_name: str, participant_id: str) -> dict[str, Any]:
    """Get a participant's rank with surrounding entries."""
    metric = _required_query_value("metric")
    period = _required_query_value("period")
    surrounding_count = _int_query_value(
        "surroundingCount", settings.default_surrounding_count
    )

    try:
        response = query_service.get_user_rank(
            participant_id, game_name, metric, period, surrounding_count
        )
    except InvalidInputError as e:
        logger.warning("Invalid rank request", extra={"error": str(e)})
        raise BadRequestError(str(e)) from e
    except NotFoundError as e:
        raise HttpNotFoundError(str(e)) from e
    except StoreUnavailableError as e:
        logger.error("Leaderboard store unavailable", extra={"error": str(e)})
        raise ServiceError(503, "Leaderboard temporarily unavailable") from e

    return response.model_dump(mode="json", by_alias=True)


@app.post("/leaderboard/scores/v1")
def submit_scores() -> dict[str, str]:
    """Submit one participant's scores for a game."""
    try:
        submission = ScoreSubmission.model_validate(app.current_event.json_body)
    except ValidationError as e:
        logger.warning("Invalid score submission", extra={"errors": e.errors(include_url=False)})
        raise BadRequestError(f"Invalid request: {e}") from e

    logger.info(
        "Score submission received",
        extra={"participant_id": submission.participant_id, "game_name": submission.game_name},
    )

    try:
        ingestion_service.submit_scores(
            submission.participant_id,
            submission.display_name,
            submission.game_name,
            submission.scores,
        )
    except InvalidInputError as e:
        raise BadRequestError(str(e)) from e
    except StoreUnavailableError as e:
        logger.error("Leaderboard store unavailable", extra={"error": str(e)})
        raise ServiceError(503, "Leaderboard temporarily unavailable") from e

    return {
        "message": "Scores submitted",
        "participant_id": submission.participant_id,
        "game_name": submission.game_name,
    }


@app.put("/leaderboard/users/v1/<participant_id>/display-name")
def update_display_name(participant_id: str) -> dict[str, str]:
    """Rename a participant on every leaderboard."""
    try:
        update = DisplayNameUpdate.model_validate(app.current_event.json_body)
    except ValidationError as e:
        raise BadRequestError(f"Invalid request: {e}") from e

    try:
        ingestion_service.update_display_name(participant_id, update.display_name)
    except InvalidInputError as e:
        raise BadRequestError(str(e)) from e
    except StoreUnavailableError as e:
        logger.error("Identity store unavailable", extra={"error": str(e)})
        raise ServiceError(503, "Leaderboard temporarily unavailable") from e

    return {"participant_id": participant_id, "display_name": update.display_name}


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
def lambda_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Lambda handler entry point."""
    return app.resolve(event, context)


@logger.inject_lambda_context
def tournament_completed_handler(
    event: dict[str, Any], context: LambdaContext
) -> dict[str, int]:
    """Apply tournament completion events delivered through EventBridge."""
    payload = event.get("detail", event)
    try:
        completed = TournamentCompletedEvent.model_validate(payload)
    except ValidationError as e:
        logger.warning("Dropping malformed tournament event", extra={"errors": e.errors(include_url=False)})
        return {"recorded": 0}

    return {"recorded": record_tournament_results(completed, ingestion_service)}
