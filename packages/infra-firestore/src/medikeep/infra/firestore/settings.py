"""Firebase / Firestore configuration using Pydantic settings.

Settings are loaded from environment variables with the ``FIREBASE_``
prefix. The Firestore client additionally honours the standard
``FIRESTORE_EMULATOR_HOST`` variable; it is surfaced here so startup logs
show which backend the service talks to.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FirebaseSettings(BaseSettings):
    """Configuration for the Firebase Admin app and Firestore client.

    Environment Variables:
        FIREBASE_CREDENTIALS_PATH: Service account JSON file. When unset,
            Application Default Credentials are used.
        FIREBASE_PROJECT_ID: Google Cloud project id (optional with a
            service account file, which names its project).
        FIREBASE_DATABASE: Firestore database id (default: ``(default)``).
        FIREBASE_APP_NAME: Name of the firebase_admin app instance.
        FIRESTORE_EMULATOR_HOST: ``host:port`` of a local emulator.

    Example:
        >>> settings = FirebaseSettings(project_id="medikeep-dev")
        >>> settings.database
        '(default)'
    """

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    credentials_path: str | None = Field(
        default=None,
        description="Path to a service account JSON file",
    )
    project_id: str | None = Field(
        default=None,
        description="Google Cloud project id",
    )
    database: str = Field(
        default="(default)",
        description="Firestore database id",
    )
    app_name: str = Field(
        default="[DEFAULT]",
        description="firebase_admin app name",
    )
    emulator_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FIRESTORE_EMULATOR_HOST", "FIREBASE_EMULATOR_HOST"),
        description="Firestore emulator host:port",
    )

    @field_validator("database")
    @classmethod
    def validate_database(cls, v: str) -> str:
        """Reject an empty database id."""
        if not v.strip():
            msg = "database must not be empty"
            raise ValueError(msg)
        return v.strip()


@lru_cache(maxsize=1)
def get_firebase_settings() -> FirebaseSettings:
    """Get cached Firebase settings singleton."""
    return FirebaseSettings()
