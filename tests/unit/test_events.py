"""Tests for tournament completion event handling."""

from unittest.mock import MagicMock, call

import pytest
from pydantic import ValidationError

from src.arena_leaderboard.events import TournamentCompletedEvent, record_tournament_results
from src.arena_leaderboard.exceptions import InvalidInputError, StoreUnavailableError


def _event(status: str = "COMPLETED") -> TournamentCompletedEvent:
    return TournamentCompletedEvent.model_validate(
        {
            "tournamentId": "t-100",
            "gameName": "valorant",
            "status": status,
            "participants": [
                {
                    "userId": "u1",
                    "username": "Alice",
                    "results": [{"metric": "wins", "value": 7, "period": ["weekly", "all_time"]}],
                },
                {
                    "userId": "u2",
                    "results": [{"metric": "wins", "value": 3}],
                },
            ],
        }
    )


class TestRecordTournamentResults:
    """Tests for forwarding tournament results to ingestion."""

    def setup_method(self, method) -> None:
        """Set up test environment."""
        self.mock_ingestion = MagicMock()

    def test_completed_tournament_forwards_each_participant(self) -> None:
        """Test every participant's results are submitted."""
        recorded = record_tournament_results(_event(), self.mock_ingestion)

        assert recorded == 2
        assert self.mock_ingestion.submit_scores.call_args_list == [
            call(
                "u1",
                "Alice",
                "valorant",
                [{"metric": "wins", "value": 7, "period": ["weekly", "all_time"]}],
            ),
            call("u2", None, "valorant", [{"metric": "wins", "value": 3}]),
        ]

    @pytest.mark.parametrize("status", ["IN_PROGRESS", "CANCELLED", "PENDING"])
    def test_unfinished_tournament_ignored(self, status: str) -> None:
        """Test only completed tournaments update leaderboards."""
        assert record_tournament_results(_event(status), self.mock_ingestion) == 0
        self.mock_ingestion.submit_scores.assert_not_called()

    def test_status_is_case_insensitive(self) -> None:
        """Test lower-case statuses from older producers."""
        assert record_tournament_results(_event("completed"), self.mock_ingestion) == 2

    def test_participant_failure_does_not_stop_others(self) -> None:
        """Test one failed participant is logged and skipped."""
        self.mock_ingestion.submit_scores.side_effect = [
            StoreUnavailableError("down"),
            None,
        ]

        assert record_tournament_results(_event(), self.mock_ingestion) == 1
        assert self.mock_ingestion.submit_scores.call_count == 2

    def test_invalid_participant_input_is_skipped(self) -> None:
        """Test input errors for one participant are contained."""
        self.mock_ingestion.submit_scores.side_effect = [None, InvalidInputError("bad")]

        assert record_tournament_results(_event(), self.mock_ingestion) == 1

    def test_event_requires_game_name(self) -> None:
        """Test malformed events fail validation."""
        with pytest.raises(ValidationError):
            TournamentCompletedEvent.model_validate(
                {"tournamentId": "t-1", "status": "COMPLETED", "participants": []}
            )


@pytest.mark.parametrize("name_field", ["display_name", "displayName", "username"])
def test_participant_display_name_aliases(name_field: str) -> None:
    """Test participant names accept the same keys as score submissions."""
    event = TournamentCompletedEvent.model_validate(
        {
            "tournamentId": "t-7",
            "gameName": "chess",
            "status": "COMPLETED",
            "participants": [
                {"userId": "u1", name_field: "Alice", "results": [{"metric": "wins", "value": 1}]}
            ],
        }
    )

    assert event.participants[0].display_name == "Alice"
