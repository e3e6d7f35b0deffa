"""Runtime configuration for the leaderboard service."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import MAX_PAGE_SIZE, MAX_SURROUNDING_COUNT


class Settings(BaseSettings):
    redis_url: str = "redis://localhost:6379/0"
    leaderboard_key_prefix: str = "leaderboard"
    identity_key_prefix: str = "userinfo"

    identity_backend: Literal["redis", "dynamodb"] = "redis"
    identity_table: str = "leaderboard-identities"
    aws_default_region: str = "us-east-1"

    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    default_surrounding_count: int = Field(default=2, ge=0)
    max_surrounding_count: int = Field(
        default=MAX_SURROUNDING_COUNT, ge=0, le=MAX_SURROUNDING_COUNT
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_defaults_within_caps(self) -> "Settings":
        """Reject defaults that every request would fail validation with."""
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        if self.default_surrounding_count > self.max_surrounding_count:
            raise ValueError("default_surrounding_count cannot exceed max_surrounding_count")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
