from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    database_url: str = Field(default="sqlite:///./studycal.db")
    log_level: str = Field(default="INFO")

    # Scheduling policy
    min_chunk_minutes: int = Field(default=15, ge=1)
    retry_step_minutes: int = Field(default=15, ge=1)
    weekly_horizon_days: int = Field(default=70, ge=0)
    pomodoro_minutes: int = Field(default=25, ge=1)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@dataclass(frozen=True)
class SchedulerConfig:
    """Policy constants shared by the auto-scheduler and recurrence expander.

    min_chunk_minutes: a slot with less free time than this is abandoned.
    retry_step_minutes: how far the cursor moves after a conflicting candidate.
    weekly_horizon_days: span of a weekly recurrence that has no end date.
    pomodoro_minutes: length of one pomodoro, used to derive ``pomos``.
    """

    min_chunk_minutes: int = 15
    retry_step_minutes: int = 15
    weekly_horizon_days: int = 70
    pomodoro_minutes: int = 25


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_scheduler_config() -> SchedulerConfig:
    settings = get_settings()
    return SchedulerConfig(
        min_chunk_minutes=settings.min_chunk_minutes,
        retry_step_minutes=settings.retry_step_minutes,
        weekly_horizon_days=settings.weekly_horizon_days,
        pomodoro_minutes=settings.pomodoro_minutes,
    )
