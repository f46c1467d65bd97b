"""Spaces configuration using Pydantic settings.

Settings are loaded from environment variables with the ``SPACES_`` prefix.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DELETE_BATCH_SIZE = 100


class TriggerMode(StrEnum):
    """How the HTTP trigger endpoint runs deletion cascades."""

    QUEUE = "queue"
    INLINE = "inline"


class SpacesSettings(BaseSettings):
    """Configuration for cascades and the trigger endpoint.

    Environment Variables:
        SPACES_DELETE_BATCH_SIZE: Documents deleted or updated per commit
            (default: 100, max: 500, the Firestore batch limit).
        SPACES_TRIGGER_MODE: ``queue`` enqueues cascades on the TaskIQ
            broker; ``inline`` runs them inside the request (local
            development without Redis). Default: ``queue``.
        SPACES_TRIGGER_SECRET: Shared secret the deletion event source
            sends in ``X-Trigger-Secret``. Unset rejects every trigger call.

    Example:
        >>> SpacesSettings().delete_batch_size
        100
    """

    model_config = SettingsConfigDict(
        env_prefix="SPACES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    delete_batch_size: int = Field(
        default=DEFAULT_DELETE_BATCH_SIZE,
        ge=1,
        le=500,
        description="Maximum documents per cascade commit",
    )
    trigger_mode: TriggerMode = Field(
        default=TriggerMode.QUEUE,
        description="queue (TaskIQ) or inline execution of deletion triggers",
    )
    trigger_secret: SecretStr | None = Field(
        default=None,
        description="Shared secret required on the trigger endpoint",
    )


@lru_cache(maxsize=1)
def get_spaces_settings() -> SpacesSettings:
    """Get cached spaces settings singleton."""
    return SpacesSettings()
