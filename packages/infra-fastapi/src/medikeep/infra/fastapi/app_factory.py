"""Application factory for the MediKeep spaces service.

:func:`create_app` assembles the API from the ``medikeep.*`` entry point
groups: lifespan hooks (observability, Firestore, auth, TaskIQ), middleware
(request id, Firebase auth), the RFC 7807 error handlers and the routers
(health, membership, deletion triggers). Tests build the same app and leave
out the hooks that need external services with ``exclude_names``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.middleware.cors import CORSMiddleware

from fastapi import FastAPI
from medikeep.foundation.application import (
    ErrorHandlerContribution,
    LifespanContribution,
    MiddlewareContribution,
    discover,
)
from medikeep.foundation.application.discovery import (
    GROUP_ERROR_HANDLERS,
    GROUP_LIFESPAN,
    GROUP_MIDDLEWARE,
    GROUP_ROUTERS,
)
from medikeep.infra.fastapi.lifespan import compose_lifespan
from medikeep.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

logger = logging.getLogger(__name__)


def _lifespan_hooks(exclude_names: frozenset[str]) -> list[LifespanContribution]:
    hooks: list[LifespanContribution] = []
    for contrib in discover(GROUP_LIFESPAN, exclude_names=exclude_names):
        hook = contrib.value
        # A bare async context manager factory runs at the default priority.
        hooks.append(hook if isinstance(hook, LifespanContribution) else LifespanContribution(hook))
    return hooks


def _middleware(exclude_names: frozenset[str]) -> list[MiddlewareContribution]:
    found: list[MiddlewareContribution] = []
    for contrib in discover(GROUP_MIDDLEWARE, exclude_names=exclude_names):
        if isinstance(contrib.value, MiddlewareContribution):
            found.append(contrib.value)
        else:
            logger.warning("middleware_entry_point_ignored", extra={"entry_point": contrib.name})
    return found


def _install_error_handlers(
    app: FastAPI,
    extra: list[ErrorHandlerContribution],
    exclude_names: frozenset[str],
) -> None:
    handlers = list(extra)
    for contrib in discover(GROUP_ERROR_HANDLERS, exclude_names=exclude_names):
        if isinstance(contrib.value, ErrorHandlerContribution):
            handlers.append(contrib.value)
        elif callable(contrib.value):
            # register(app) functions install their own handler set.
            contrib.value(app)
        else:
            logger.warning("error_handler_entry_point_ignored", extra={"entry_point": contrib.name})

    for handler in handlers:
        app.add_exception_handler(handler.exception_class, handler.handler)


def create_app(
    settings: AppSettings | None = None,
    *,
    extra_routers: list[APIRouter] | None = None,
    extra_middleware: list[MiddlewareContribution] | None = None,
    extra_lifespan_hooks: list[LifespanContribution] | None = None,
    extra_error_handlers: list[ErrorHandlerContribution] | None = None,
    exclude_groups: frozenset[str] | None = None,
    exclude_names: frozenset[str] | None = None,
) -> FastAPI:
    """Build the FastAPI application from installed contributions.

    ``app.state.document_store`` and ``app.state.token_verifier`` start as
    ``None``; the Firestore and auth lifespan hooks fill them in at startup.
    Tests assign them directly after building the app.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        extra_routers: Routers mounted after the discovered ones.
        extra_middleware: Middleware sorted together with the discovered ones.
        extra_lifespan_hooks: Lifespan hooks composed with the discovered ones.
        extra_error_handlers: Exception handlers installed after discovery.
        exclude_groups: Entry point groups to skip entirely.
        exclude_names: Entry point names to skip in every group.

    Returns:
        The configured application.
    """
    settings = settings or AppSettings()
    skip_groups = exclude_groups if exclude_groups is not None else settings.exclude_groups
    skip_names = exclude_names if exclude_names is not None else settings.exclude_entry_points

    hooks = list(extra_lifespan_hooks or [])
    if GROUP_LIFESPAN not in skip_groups:
        hooks.extend(_lifespan_hooks(skip_names))

    app = FastAPI(
        title=settings.title,
        version=settings.version,
        description=settings.description,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        debug=settings.debug,
        lifespan=compose_lifespan(hooks),
    )
    app.state.document_store = None
    app.state.token_verifier = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
        expose_headers=settings.cors.expose_headers,
    )

    middleware = list(extra_middleware or [])
    if GROUP_MIDDLEWARE not in skip_groups:
        middleware.extend(_middleware(skip_names))
    # Starlette wraps in LIFO order: add the innermost (highest priority) first.
    for contrib in sorted(middleware, key=lambda m: m.priority, reverse=True):
        app.add_middleware(contrib.middleware_class, **contrib.kwargs)

    if GROUP_ERROR_HANDLERS in skip_groups:
        for handler in extra_error_handlers or []:
            app.add_exception_handler(handler.exception_class, handler.handler)
    else:
        _install_error_handlers(app, list(extra_error_handlers or []), skip_names)

    routers = list(extra_routers or [])
    if GROUP_ROUTERS not in skip_groups:
        routers.extend(contrib.value for contrib in discover(GROUP_ROUTERS, exclude_names=skip_names))
    for router in routers:
        app.include_router(router)

    logger.info(
        "app_created",
        extra={
            "lifespan_hooks": len(hooks),
            "middleware": [m.middleware_class.__name__ for m in middleware],
            "routers": len(routers),
        },
    )
    return app
