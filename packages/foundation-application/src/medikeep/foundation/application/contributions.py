"""Contribution types for entry-point auto-discovery.

Packages declare routers, middleware, error handlers and lifespan hooks
through entry points; these dataclasses describe the latter three. They
stay framework-agnostic so the foundation layer never imports FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Middleware priority bands: lower runs first (outermost)
MIDDLEWARE_PRIORITY_MIN = 0
MIDDLEWARE_PRIORITY_MAX = 499
MIDDLEWARE_PRIORITY_REQUEST_ID = 10
MIDDLEWARE_PRIORITY_AUTH = 150

# Lifespan priorities: lower starts first and shuts down last
LIFESPAN_PRIORITY_OBSERVABILITY = 50
LIFESPAN_PRIORITY_FIRESTORE = 75
LIFESPAN_PRIORITY_AUTH = 100
LIFESPAN_PRIORITY_TASKIQ = 150


@dataclass(frozen=True, slots=True)
class MiddlewareContribution:
    """Middleware to be registered on the application.

    Attributes:
        middleware_class: The ASGI middleware class.
        priority: Position in the stack, in [0, 499]. 0-99 outermost,
            100-199 security, 200-299 context.
        kwargs: Extra keyword arguments for ``add_middleware()``.
    """

    middleware_class: type[Any]
    priority: int = 400
    kwargs: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not MIDDLEWARE_PRIORITY_MIN <= self.priority <= MIDDLEWARE_PRIORITY_MAX:
            msg = (
                f"Middleware priority must be between {MIDDLEWARE_PRIORITY_MIN} "
                f"and {MIDDLEWARE_PRIORITY_MAX}, got {self.priority}"
            )
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ErrorHandlerContribution:
    """Exception handler to be registered on the application.

    Attributes:
        exception_class: The exception type to handle.
        handler: Async callable ``(Request, Exception) -> Response``.
    """

    exception_class: type[BaseException]
    handler: Any


@dataclass(frozen=True, slots=True)
class LifespanContribution:
    """Startup/shutdown hook.

    Attributes:
        hook: Async context manager factory ``(app) -> AsyncContextManager[None]``.
        priority: Lower priorities start first and shut down last.
    """

    hook: Any
    priority: int = 500
