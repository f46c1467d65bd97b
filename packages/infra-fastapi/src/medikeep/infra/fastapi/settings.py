"""Settings for the spaces API application.

``APP_*`` variables control the FastAPI instance and entry-point discovery;
``CORS_*`` variables control which browser origins (the MediKeep web
client) may call the membership endpoints.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DISTRIBUTION = "medikeep"

# Env values stay raw strings so the validator can split them.
CsvList = Annotated[list[str], NoDecode]


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class CORSSettings(BaseSettings):
    """Cross-origin policy.

    List fields accept a comma-separated string, e.g.
    ``CORS_ALLOW_ORIGINS=https://app.medikeep.example,http://localhost:5173``.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: CsvList = Field(default=["*"])
    allow_methods: CsvList = Field(default=["*"])
    allow_headers: CsvList = Field(default=["*"])
    allow_credentials: bool = Field(default=False)
    # Lets the web client read the id it should quote when reporting an error.
    expose_headers: CsvList = Field(default=["X-Request-ID"])

    @field_validator(
        "allow_origins",
        "allow_methods",
        "allow_headers",
        "expose_headers",
        mode="before",
    )
    @classmethod
    def _csv_lists(cls, value: Any) -> Any:
        return _split_csv(value)

    @model_validator(mode="after")
    def _reject_credentials_with_any_origin(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "CORS_ALLOW_CREDENTIALS=true requires explicit CORS_ALLOW_ORIGINS"
            raise ValueError(msg)
        return self


def _installed_version() -> str:
    try:
        return version(DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """FastAPI instance and discovery settings (``APP_`` prefix).

    ``APP_EXCLUDE_ENTRY_POINTS`` drops named contributions from every group,
    e.g. ``["taskiq"]`` to run without Redis when ``SPACES_TRIGGER_MODE=inline``.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = Field(default="MediKeep Spaces")
    version: str = Field(default_factory=_installed_version)
    description: str = Field(default="")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str | None = Field(default="/openapi.json")
    debug: bool = Field(default=False)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    exclude_groups: frozenset[str] = Field(default=frozenset())
    exclude_entry_points: frozenset[str] = Field(default=frozenset())
