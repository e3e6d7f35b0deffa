"""Data models for the leaderboard core."""

import math
from enum import Enum
from typing import Annotated

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    field_validator,
)
from pydantic.alias_generators import to_camel

KEY_SEPARATOR = ":"
MAX_PAGE_SIZE = 100
MAX_SURROUNDING_COUNT = 10


class Period(str, Enum):
    """Supported ranking periods. Each period is an independent scope."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "all_time"


DEFAULT_PERIOD = Period.ALL_TIME


def _validate_scope_part(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Value cannot be blank")
    if KEY_SEPARATOR in value:
        raise ValueError(f"Value must not contain '{KEY_SEPARATOR}'")
    return value


# Game names and metrics become segments of the store key.
ScopeName = Annotated[
    str, Field(min_length=1, max_length=50), AfterValidator(_validate_scope_part)
]


class ViewModel(BaseModel):
    """Base for response views: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True
    )


class LeaderboardKey(BaseModel):
    """Identifies one independent ranking scope."""

    game_name: ScopeName
    metric: ScopeName
    period: Period

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return KEY_SEPARATOR.join((self.game_name, self.metric, self.period.value))


class LeaderboardQuery(BaseModel):
    """Parameters for a leaderboard page request."""

    game_name: ScopeName
    metric: ScopeName
    period: Period
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)

    @property
    def key(self) -> LeaderboardKey:
        return LeaderboardKey(
            game_name=self.game_name, metric=self.metric, period=self.period
        )


class UserRankQuery(BaseModel):
    """Parameters for a single participant's rank request."""

    participant_id: str = Field(..., min_length=1)
    game_name: ScopeName
    metric: ScopeName
    period: Period
    surrounding_count: int = Field(default=2, ge=0, le=MAX_SURROUNDING_COUNT)

    @field_validator("participant_id")
    @classmethod
    def validate_participant_id(cls, v: str) -> str:
        """Validate participant id is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Participant id cannot be empty")
        return v

    @property
    def key(self) -> LeaderboardKey:
        return LeaderboardKey(
            game_name=self.game_name, metric=self.metric, period=self.period
        )


class ScoreEntry(BaseModel):
    """One metric value emitted by a finished match or tournament.

    ``value`` is the new absolute score for every listed period. ``period``
    may be omitted (all-time only), a single period, or a list to fan the
    value out to several independent scopes.
    """

    metric: ScopeName
    value: StrictInt | StrictFloat
    period: Period | list[Period] | None = None

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: int | float) -> int | float:
        """Reject NaN and infinities, which cannot be ranked."""
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("Score value must be a finite number")
        return v

    @field_validator("period")
    @classmethod
    def validate_period(
        cls, v: Period | list[Period] | None
    ) -> Period | list[Period] | None:
        if isinstance(v, list) and not v:
            raise ValueError("Period list cannot be empty")
        return v

    @property
    def periods(self) -> list[Period]:
        """Periods this entry applies to, in order, without duplicates."""
        if self.period is None:
            return [DEFAULT_PERIOD]
        if isinstance(self.period, Period):
            return [self.period]
        return list(dict.fromkeys(self.period))


class ScoreSubmission(BaseModel):
    """Score update request for one participant in one game.

    Entries in ``scores`` are kept raw and validated one by one during
    ingestion so a single bad entry does not reject the whole submission.
    """

    participant_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("participant_id", "userId")
    )
    display_name: str | None = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("display_name", "displayName", "username"),
    )
    game_name: ScopeName = Field(
        ..., validation_alias=AliasChoices("game_name", "gameName")
    )
    scores: list[dict] = Field(..., min_length=1)

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str | None) -> str | None:
        """Treat blank display names as missing."""
        if v is None:
            return None
        return v.strip() or None


class DisplayNameUpdate(BaseModel):
    """Request body for renaming a participant on every leaderboard."""

    display_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        validation_alias=AliasChoices("display_name", "displayName", "username"),
    )

    @field_validator("display_name")
    @classmethod
    def validate_display_name(cls, v: str) -> str:
        """Validate display name is not blank."""
        v = v.strip()
        if not v:
            raise ValueError("Display name cannot be empty")
        return v


class LeaderboardEntry(ViewModel):
    """One ranked row of a leaderboard."""

    participant_id: str
    display_name: str
    score: float
    rank: int = Field(..., ge=1, description="Rank position")
    games_played: int | None = None


class LeaderboardPage(ViewModel):
    """One page of a leaderboard scope."""

    game_name: str
    metric: str
    period: Period
    entries: list[LeaderboardEntry]
    total_items: int
    current_page: int
    page_size: int
    total_pages: int


class UserRankDetail(ViewModel):
    """A participant's rank with a window of neighbouring entries."""

    participant_id: str
    game_name: str
    metric: str
    period: Period
    rank: int
    score: float
    surrounding: list[LeaderboardEntry]
