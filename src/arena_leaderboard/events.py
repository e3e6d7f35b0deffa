"""Tournament completion events feeding the leaderboards."""

from typing import Any

from aws_lambda_powertools import Logger
from pydantic import AliasChoices, BaseModel, Field

from .exceptions import LeaderboardError
from .ingestion import ScoreIngestionService
from .models import ScopeName

logger = Logger(child=True)

COMPLETED_STATUS = "COMPLETED"


class ParticipantResult(BaseModel):
    """Final scores of one participant in a tournament."""

    participant_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("participant_id", "userId")
    )
    display_name: str | None = Field(
        default=None, validation_alias=AliasChoices("display_name", "displayName", "username")
    )
    scores: list[dict[str, Any]] = Field(
        ..., min_length=1, validation_alias=AliasChoices("scores", "results")
    )


class TournamentCompletedEvent(BaseModel):
    """Payload emitted when a tournament changes status."""

    tournament_id: str = Field(
        ..., validation_alias=AliasChoices("tournament_id", "tournamentId")
    )
    game_name: ScopeName = Field(
        ..., validation_alias=AliasChoices("game_name", "gameName")
    )
    status: str
    participants: list[ParticipantResult] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.status.strip().upper() == COMPLETED_STATUS


def record_tournament_results(
    event: TournamentCompletedEvent, ingestion: ScoreIngestionService
) -> int:
    """Forward each participant's results to score ingestion.

    Only completed tournaments are recorded. A participant whose scores
    cannot be applied is logged and does not stop the others.

    Returns:
        Number of participants whose scores were submitted
    """
    if not event.is_completed:
        logger.info(
            "Ignoring tournament that is not completed",
            extra={"tournament_id": event.tournament_id, "status": event.status},
        )
        return 0

    recorded = 0
    for participant in event.participants:
        try:
            ingestion.submit_scores(
                participant.participant_id,
                participant.display_name,
                event.game_name,
                participant.scores,
            )
        except LeaderboardError as e:
            logger.error(
                "Failed to record tournament results",
                extra={
                    "tournament_id": event.tournament_id,
                    "participant_id": participant.participant_id,
                    "error": str(e),
                },
            )
            continue
        recorded += 1

    logger.info(
        "Tournament results recorded",
        extra={
            "tournament_id": event.tournament_id,
            "participants": len(event.participants),
            "recorded": recorded,
        },
    )
    return recorded
