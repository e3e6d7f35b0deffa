"""Read-side leaderboard operations: pages and rank lookups."""

import math

from aws_lambda_powertools import Logger
from pydantic import ValidationError

from .exceptions import InvalidInputError, NotFoundError
from .identity import IdentityDirectory, fallback_display_name
from .models import (
    MAX_PAGE_SIZE,
    MAX_SURROUNDING_COUNT,
    LeaderboardEntry,
    LeaderboardPage,
    LeaderboardQuery,
    UserRankDetail,
    UserRankQuery,
)
from .score_store import RankedScore, ScoreStore

logger = Logger(child=True)


class LeaderboardQueryService:
    """Builds leaderboard views from the score store and identity directory."""

    def __init__(
        self,
        store: ScoreStore,
        identities: IdentityDirectory,
        max_page_size: int = MAX_PAGE_SIZE,
        max_surrounding_count: int = MAX_SURROUNDING_COUNT,
    ) -> None:
        """Initialize service with its store dependencies and request caps."""
        self.store = store
        self.identities = identities
        self.max_page_size = max_page_size
        self.max_surrounding_count = max_surrounding_count

    def health_check(self) -> dict[str, str]:
        """Perform health check."""
        return {"status": "healthy", "service": "leaderboard"}

    def get_page(
        self, game_name: str, metric: str, period: str, page: int, page_size: int
    ) -> LeaderboardPage:
        """Get one page of a leaderboard scope.

        Args:
            game_name: Game identifier
            metric: Ranking metric, e.g. ``rating`` or ``wins``
            period: Ranking period
            page: 1-based page number
            page_size: Entries per page

        Returns:
            LeaderboardPage. An empty scope yields an empty page with
            ``total_pages`` of 1, and pages past the end have no entries.

        Raises:
            InvalidInputError: If any parameter is missing or out of bounds
            StoreUnavailableError: If the backing store cannot be reached
        """
        try:
            query = LeaderboardQuery(
                game_name=game_name,
                metric=metric,
                period=period,
                page=page,
                page_size=page_size,
            )
        except ValidationError as e:
            raise InvalidInputError(f"Invalid leaderboard request: {e}") from e
        if query.page_size > self.max_page_size:
            raise InvalidInputError(f"Page size must be at most {self.max_page_size}")

        key = query.key
        total = self.store.count(key)
        total_pages = max(1, math.ceil(total / query.page_size))
        start = (query.page - 1) * query.page_size
        if start >= total:
            return self._page(query, [], total_items=total, total_pages=total_pages)

        end = start + query.page_size - 1
        rows = self.store.range_by_rank_descending(key, start, end)
        entries = self._enrich(rows, start)
        return self._page(query, entries, total_items=total, total_pages=total_pages)

    def get_user_rank(
        self,
        participant_id: str,
        game_name: str,
        metric: str,
        period: str,
        surrounding_count: int,
    ) -> UserRankDetail:
        """Get a participant's rank with neighbouring entries.

        The window spans ``surrounding_count`` ranks on either side of the
        participant and is clipped, not re-centred, at rank 1.

        Raises:
            InvalidInputError: If any parameter is missing or out of bounds
            NotFoundError: If the participant has no score in the scope
            StoreUnavailableError: If the backing store cannot be reached
        """
        try:
            query = UserRankQuery(
                participant_id=participant_id,
                game_name=game_name,
                metric=metric,
                period=period,
                surrounding_count=surrounding_count,
            )
        except ValidationError as e:
            raise InvalidInputError(f"Invalid rank request: {e}") from e
        if query.surrounding_count > self.max_surrounding_count:
            raise InvalidInputError(
                f"Surrounding count must be at most {self.max_surrounding_count}"
            )

        key = query.key
        found = self.store.rank_and_score(key, query.participant_id)
        if found is None:
            raise NotFoundError(query.participant_id, str(key))
        rank, score = found

        start = max(0, rank - query.surrounding_count)
        end = rank + query.surrounding_count
        rows = self.store.range_by_rank_descending(key, start, end)

        return UserRankDetail(
            participant_id=query.participant_id,
            game_name=key.game_name,
            metric=key.metric,
            period=key.period,
            rank=rank + 1,
            score=score,
            surrounding=self._enrich(rows, start),
        )

    def _enrich(self, rows: list[RankedScore], start: int) -> list[LeaderboardEntry]:
        """Attach display names and 1-based ranks to a fetched rank range."""
        if not rows:
            return []
        names = self.identities.get_display_names([participant_id for participant_id, _ in rows])
        return [
            LeaderboardEntry(
                participant_id=participant_id,
                display_name=name or fallback_display_name(participant_id),
                score=score,
                rank=start + offset + 1,
            )
            for offset, ((participant_id, score), name) in enumerate(zip(rows, names))
        ]

    def _page(
        self,
        query: LeaderboardQuery,
        entries: list[LeaderboardEntry],
        total_items: int,
        total_pages: int,
    ) -> LeaderboardPage:
        logger.debug(
            "Leaderboard page built",
            extra={"leaderboard": str(query.key), "page": query.page, "entries_count": len(entries)},
        )
        return LeaderboardPage(
            game_name=query.game_name,
            metric=query.metric,
            period=query.period,
            entries=entries,
            total_items=total_items,
            current_page=query.page,
            page_size=query.page_size,
            total_pages=total_pages,
        )
