"""RFC 7807 problem responses for membership and trigger failures.

Every :class:`DomainError` carries an :class:`ErrorKind`; the response
status follows the kind and the ``error_code`` extension member repeats it
(``invalid-argument``, ``not-found``, ``permission-denied``,
``already-exists``, ``failed-precondition``, ``internal``) so the web client
can branch on one field. Context attached to an error is copied into the
body after credential-looking keys and substrings are removed. 500
responses carry ``correlation_id``, the request's X-Request-ID.

Usage:
    from medikeep.infra.fastapi.error_handlers import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from medikeep.foundation.domain.exceptions import (
    AuthenticationError,
    DomainError,
    ErrorKind,
    InternalError,
)
from medikeep.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_STATUS_BY_KIND: dict[ErrorKind, tuple[int, str]] = {
    ErrorKind.INVALID_ARGUMENT: (400, "Invalid Argument"),
    ErrorKind.UNAUTHENTICATED: (401, "Unauthorized"),
    ErrorKind.PERMISSION_DENIED: (403, "Permission Denied"),
    ErrorKind.NOT_FOUND: (404, "Resource Not Found"),
    ErrorKind.ALREADY_EXISTS: (409, "Already Exists"),
    ErrorKind.FAILED_PRECONDITION: (412, "Failed Precondition"),
    ErrorKind.INTERNAL: (500, "Internal Server Error"),
}

_UNHANDLED_DETAIL = "An internal error occurred. Please contact support with the correlation ID."

_SENSITIVE_KEYS = frozenset({"password", "secret", "token", "id_token", "private_key", "credential"})

_VALUE = r"\s*[=:]\s*['\"]?[^'\"\s,]+['\"]?"
_SENSITIVE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"rediss?://[^@\s]*@[^/\s]*"), "redis://[REDACTED]@[REDACTED]"),
    (re.compile(r"password" + _VALUE, re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"secret" + _VALUE, re.IGNORECASE), "secret=[REDACTED]"),
    (re.compile(r"token" + _VALUE, re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"private[_-]?key" + _VALUE, re.IGNORECASE), "private_key=[REDACTED]"),
)


class ProblemDetail(BaseModel):
    """RFC 7807 body with the ``error_code``, ``context`` and ``correlation_id`` extensions."""

    type: str = Field(..., examples=["/errors/failed-precondition"])
    title: str = Field(..., examples=["Failed Precondition"])
    status: int = Field(..., ge=400, le=599)
    detail: str
    instance: str | None = Field(default=None, description="Request path")
    error_code: str | None = Field(default=None, examples=["permission-denied"])
    context: dict[str, Any] | None = None
    correlation_id: str | None = Field(default=None, description="X-Request-ID of the call")


def _problem_response(problem: ProblemDetail, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def _correlation_id() -> str:
    return get_request_id() or "unknown"


def _is_sensitive_key(key: str) -> bool:
    return key.lower() in _SENSITIVE_KEYS


def _redact_sensitive_strings(text: str) -> str:
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _sanitize_value(value: Any) -> Any:
    """Make one context value JSON-safe and free of credentials."""
    if isinstance(value, str):
        return _redact_sensitive_strings(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return _sanitize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_sanitize_value(item) for item in value]
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def _sanitize_context(context: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop sensitive keys and sanitize values; ``None`` when nothing is left."""
    if not context:
        return None
    sanitized = {
        key: _sanitize_value(value) for key, value in context.items() if not _is_sensitive_key(key)
    }
    return sanitized or None


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Translate a DomainError into the problem response for its kind.

    Internal errors are logged with the wrapped store failure's traceback
    and answered with a correlation id; the body never includes the cause.
    """
    status, title = _STATUS_BY_KIND[exc.kind]
    problem = ProblemDetail(
        type=f"/errors/{exc.kind.value}",
        title=title,
        status=status,
        detail=_redact_sensitive_strings(exc.message),
        instance=request.url.path,
        error_code=exc.kind.value,
        context=_sanitize_context(exc.context),
    )
    if isinstance(exc, InternalError):
        problem.correlation_id = _correlation_id()
        logger.error(
            "internal_error",
            extra={
                "correlation_id": problem.correlation_id,
                "path": request.url.path,
                "method": request.method,
                "cause_type": exc.context.get("cause_type"),
            },
            exc_info=exc.cause or exc,
        )
    return _problem_response(problem)


async def authentication_error_handler(
    request: Request,
    exc: AuthenticationError,
) -> JSONResponse:
    """401 with the RFC 6750 ``WWW-Authenticate`` challenge."""
    problem = ProblemDetail(
        type=f"/errors/{exc.auth_error.replace('_', '-')}",
        title="Unauthorized",
        status=401,
        detail=exc.message,
        instance=request.url.path,
        error_code=exc.kind.value,
    )
    challenge = f'Bearer realm="medikeep", error="{exc.auth_error}"'
    return _problem_response(problem, headers={"WWW-Authenticate": challenge})


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """422 for bodies FastAPI could not parse (e.g. a trigger event without ``document``)."""
    errors = [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    problem = ProblemDetail(
        type="/errors/request-validation-error",
        title="Request Validation Error",
        status=422,
        detail="Request validation failed",
        instance=request.url.path,
        error_code="request-validation-error",
        context={"errors": errors},
    )
    return _problem_response(problem)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything that escaped the domain error hierarchy.

    The exception is logged in full; the client only sees the correlation id.
    """
    correlation_id = _correlation_id()
    logger.exception(
        "unhandled_exception",
        extra={
            "correlation_id": correlation_id,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        },
    )
    problem = ProblemDetail(
        type=f"/errors/{ErrorKind.INTERNAL.value}",
        title="Internal Server Error",
        status=500,
        detail=_UNHANDLED_DETAIL,
        instance=request.url.path,
        error_code=ErrorKind.INTERNAL.value,
        correlation_id=correlation_id,
    )
    return _problem_response(problem)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the problem-response handlers on ``app``.

    Starlette dispatches on the exception's MRO, so AuthenticationError
    reaches its own handler before the DomainError one.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> register_exception_handlers(app)
    """
    # Starlette types handlers as (Request, Exception); ours are narrower.
    app.add_exception_handler(AuthenticationError, authentication_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
