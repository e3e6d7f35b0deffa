"""Write-side leaderboard operations: applying submitted scores."""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from aws_lambda_powertools import Logger
from pydantic import TypeAdapter, ValidationError

from .exceptions import InvalidInputError, LeaderboardError, StoreUnavailableError
from .identity import IdentityDirectory, fallback_display_name
from .models import LeaderboardKey, ScoreEntry, ScopeName
from .score_store import ScoreStore

logger = Logger(child=True)

# Resolves a participant id to a display name from the user system of record.
UserLookup = Callable[[str], str | None]

_scope_name = TypeAdapter(ScopeName)


@dataclass
class IngestionReport:
    """Outcome of one submission, accumulated entry by entry."""

    applied: list[str] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)
    failed: list[dict[str, str]] = field(default_factory=list)
    last_error: LeaderboardError | None = None

    @property
    def attempted(self) -> int:
        return len(self.applied) + len(self.failed)


class ScoreIngestionService:
    """Validates score updates and fans them out to per-period scopes."""

    def __init__(
        self,
        store: ScoreStore,
        identities: IdentityDirectory,
        user_lookup: UserLookup | None = None,
    ) -> None:
        self.store = store
        self.identities = identities
        self.user_lookup = user_lookup

    def submit_scores(
        self,
        participant_id: str,
        display_name: str | None,
        game_name: str,
        scores: Iterable[Mapping[str, Any] | ScoreEntry],
    ) -> None:
        """Apply a participant's scores to every listed period scope.

        Each value replaces the participant's score in its scope. Invalid
        entries and failed writes are logged and skipped so the rest of the
        submission still lands.

        Raises:
            InvalidInputError: If the participant, game or score list is missing
            StoreUnavailableError: If writes were attempted and none succeeded
        """
        scores = list(scores or [])
        if not isinstance(participant_id, str) or not participant_id.strip():
            raise InvalidInputError("Participant id is required")
        try:
            game_name = _scope_name.validate_python(game_name)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid game name: {e}") from e
        if not scores:
            raise InvalidInputError("At least one score entry is required")

        participant_id = participant_id.strip()
        name = self._resolve_display_name(participant_id, display_name)

        report = IngestionReport()
        for raw in scores:
            self._apply_entry(report, participant_id, name, game_name, raw)

        logger.info(
            "Scores submitted",
            extra={
                "participant_id": participant_id,
                "game_name": game_name,
                "applied": report.applied,
                "skipped_count": len(report.skipped),
                "failed_count": len(report.failed),
            },
        )

        if report.attempted and not report.applied:
            raise StoreUnavailableError(
                f"No scores could be applied for participant {participant_id}"
            ) from report.last_error

    def update_display_name(self, participant_id: str, display_name: str) -> None:
        """Overwrite a participant's cached display name on every leaderboard."""
        if not isinstance(participant_id, str) or not participant_id.strip():
            raise InvalidInputError("Participant id is required")
        if not isinstance(display_name, str) or not display_name.strip():
            raise InvalidInputError("Display name is required")

        self.identities.set_display_name(participant_id.strip(), display_name.strip())
        logger.info("Display name updated", extra={"participant_id": participant_id})

    def _resolve_display_name(self, participant_id: str, display_name: str | None) -> str:
        if display_name and display_name.strip():
            return display_name.strip()

        if self.user_lookup is not None:
            try:
                looked_up = self.user_lookup(participant_id)
            except Exception as e:
                logger.warning(
                    "Display name lookup failed",
                    extra={"participant_id": participant_id, "error": str(e)},
                )
            else:
                if looked_up:
                    return looked_up

        return fallback_display_name(participant_id)

    def _apply_entry(
        self,
        report: IngestionReport,
        participant_id: str,
        display_name: str,
        game_name: str,
        raw: Mapping[str, Any] | ScoreEntry,
    ) -> None:
        try:
            entry = raw if isinstance(raw, ScoreEntry) else ScoreEntry.model_validate(raw)
            keys = [
                LeaderboardKey(game_name=game_name, metric=entry.metric, period=period)
                for period in entry.periods
            ]
        except ValidationError as e:
            logger.warning(
                "Skipping invalid score entry",
                extra={"entry": repr(raw), "errors": e.errors(include_url=False)},
            )
            report.skipped.append({"entry": raw, "reason": str(e)})
            return

        for key in keys:
            try:
                self.identities.set_display_name(participant_id, display_name)
            except LeaderboardError as e:
                logger.warning(
                    "Failed to cache display name",
                    extra={"participant_id": participant_id, "error": str(e)},
                )

            try:
                self.store.upsert(key, participant_id, entry.value)
            except LeaderboardError as e:
                logger.error(
                    "Failed to update score",
                    extra={"leaderboard": str(key), "participant_id": participant_id, "error": str(e)},
                )
                report.failed.append({"leaderboard": str(key), "error": str(e)})
                report.last_error = e
            else:
                report.applied.append(str(key))
