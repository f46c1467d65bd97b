"""X-Request-ID correlation for API calls and the cascades they start.

Every request gets an id: the caller's ``X-Request-ID`` when it is a UUID,
a fresh UUID4 otherwise. The id is echoed on the response, readable through
:func:`get_request_id` and bound into the structlog context, so membership
and trigger log lines of one call share ``request_id``. Problem responses
reuse it as ``correlation_id``.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import structlog

from medikeep.foundation.application.contributions import (
    MIDDLEWARE_PRIORITY_REQUEST_ID,
    MiddlewareContribution,
)

if TYPE_CHECKING:
    from collections.abc import Callable

REQUEST_ID_HEADER = "X-Request-ID"
_HEADER_KEY = b"x-request-id"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Request id of the current call, or ``""`` outside a request.

    Example:
        >>> from medikeep.infra.fastapi.middleware import get_request_id
        >>> get_request_id()
        ''
    """
    return request_id_ctx.get()


def _is_valid_uuid(value: str | None) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError):
        return False
    return True


def _incoming_request_id(scope: dict[str, Any]) -> str:
    for key, value in scope.get("headers", []):
        if key.lower() == _HEADER_KEY:
            candidate = value.decode("latin-1")
            if _is_valid_uuid(candidate):
                return candidate
            break
    # Malformed ids are replaced rather than rejected.
    return str(uuid.uuid4())


class RequestIdMiddleware:
    """Pure ASGI middleware assigning and propagating the request id.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> app.add_middleware(RequestIdMiddleware)
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope)
        encoded = request_id.encode("latin-1")

        async def send_with_request_id(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                message = {
                    **message,
                    "headers": [*message.get("headers", []), (_HEADER_KEY, encoded)],
                }
            await send(message)

        token = request_id_ctx.set(request_id)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
            request_id_ctx.reset(token)


# Outermost band, so auth failures carry a request id too.
contribution = MiddlewareContribution(
    middleware_class=RequestIdMiddleware,
    priority=MIDDLEWARE_PRIORITY_REQUEST_ID,
)
