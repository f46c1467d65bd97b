"""TaskIQ configuration using Pydantic settings.

Provides type-safe configuration for the TaskIQ broker, result backend and
retry policy. Settings are loaded from environment variables with the
``TASKIQ_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskIQSettings(BaseSettings):
    """Configuration for the TaskIQ broker.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis URL for the stream broker and result backend
            (default: redis://localhost:6379/1)
        TASKIQ_RESULT_TTL: Result backend TTL in seconds (default: 3600)
        TASKIQ_MAX_RETRIES: Attempts for tasks labelled ``retry_on_error``
            (default: 5)

    Example:
        >>> settings = TaskIQSettings()
        >>> settings.redis_url
        'redis://localhost:6379/1'
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for TaskIQ broker (database 1 by default)",
    )
    result_ttl: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Result backend TTL in seconds",
    )
    max_retries: int = Field(
        default=5,
        ge=0,
        le=50,
        description="Default retry count for tasks labelled retry_on_error",
    )


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Get cached TaskIQ settings singleton."""
    return TaskIQSettings()
