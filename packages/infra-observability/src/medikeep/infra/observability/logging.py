"""structlog configuration for the API process and the cascade worker.

Service modules log through the standard library
(``logging.getLogger(__name__)``) with a snake_case event name and the
identifiers in ``extra``::

    logger.info("space_cascade_completed", extra={"space_id": sid, "commits": 3})

:func:`configure_logging` renders those records, and anything logged through
structlog directly, with one processor chain: request id from the context,
level, UTC timestamp, redaction of credential-looking keys, then JSON in
production or colored console output elsewhere.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

Processor = structlog.types.Processor

# Keys whose values never reach a log line. Firebase ID tokens and service
# account keys are the ones this service actually handles.
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "authorization",
        "bearer",
        "credential",
        "id_token",
        "private_key",
        "secret",
        "password",
        "token",
        "api_key",
        "apikey",
    }
)
_SENSITIVE_SUBSTRINGS: tuple[str, ...] = ("password", "token", "secret")

REDACTED_VALUE = "***REDACTED***"

_STDLIB_HANDLER_NAME = "medikeep-structlog"

# Firebase Admin and gRPC log every token refresh and channel event at INFO.
_QUIET_LOGGERS: tuple[str, ...] = ("google.auth", "urllib3", "grpc")

_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSettings(BaseSettings):
    """Log level and output format.

    Environment Variables:
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive).
        ENVIRONMENT: ``production`` switches output to one JSON object per line.
    """

    model_config = SettingsConfigDict(env_prefix="", extra="ignore", populate_by_name=True)

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        level = str(v).upper()
        if level not in _LEVELS:
            msg = f"LOG_LEVEL must be one of {sorted(_LEVELS)}, got {v!r}"
            raise ValueError(msg)
        return level

    @property
    def use_json_logs(self) -> bool:
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


class SensitiveDataProcessor:
    """Replace the value of any credential-looking key with :data:`REDACTED_VALUE`.

    Matching is case-insensitive: exact names from :data:`SENSITIVE_FIELDS`,
    or any key containing ``password``, ``token`` or ``secret``.

    Example:
        >>> SensitiveDataProcessor()(None, "info", {"event": "x", "id_token": "eyJ..."})
        {'event': 'x', 'id_token': '***REDACTED***'}
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in list(event_dict):
            if self._is_sensitive(key):
                event_dict[key] = REDACTED_VALUE
        return event_dict

    @staticmethod
    def _is_sensitive(key: str) -> bool:
        lowered = key.lower()
        return lowered in SENSITIVE_FIELDS or any(s in lowered for s in _SENSITIVE_SUBSTRINGS)


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings singleton."""
    return LoggingSettings()


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install the structlog chain for structlog and standard library loggers.

    Safe to call more than once; each call replaces the handler installed
    by the previous one.
    """
    settings = settings or get_logging_settings()

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
    ]
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if settings.use_json_logs
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared, structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level_int),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _install_stdlib_handler(settings, shared, renderer)


def _install_stdlib_handler(
    settings: LoggingSettings,
    shared: list[Processor],
    renderer: Processor,
) -> None:
    formatter = structlog.stdlib.ProcessorFormatter(
        # ExtraAdder lifts ``extra={...}`` into the event dict before redaction.
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.ExtraAdder(),
            *shared,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.set_name(_STDLIB_HANDLER_NAME)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _STDLIB_HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level_int)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, settings.log_level_int))


def get_logger(name: str | None = None) -> structlog.typing.WrappedLogger:
    """structlog logger, bound to ``logger=name`` when a name is given.

    Example:
        >>> log = get_logger("medikeep.domain.spaces")
        >>> log.info("space_cascade_started", space_id="s1")
    """
    logger = structlog.get_logger()
    return logger.bind(logger=name) if name is not None else logger
