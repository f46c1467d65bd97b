"""Startup and shutdown ordering for the spaces service.

The hooks come from the ``medikeep.lifespan`` group: logging first, then
the Firestore store, the token verifier (which reuses the Firestore app)
and finally the TaskIQ broker. Shutdown runs in reverse so the broker is
closed before the store it feeds.
"""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI
    from medikeep.foundation.application import LifespanContribution

logger = logging.getLogger(__name__)


def _hook_name(contrib: LifespanContribution) -> str:
    return getattr(contrib.hook, "__qualname__", repr(contrib.hook))


def compose_lifespan(hooks: list[LifespanContribution]) -> object:
    """Nest ``hooks`` into one lifespan, lowest priority outermost.

    If a hook fails at startup, the hooks already entered are exited before
    the error propagates.

    Returns:
        An async context manager factory for FastAPI's ``lifespan``.
    """
    ordered = sorted(hooks, key=lambda h: h.priority)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for contrib in ordered:
                await stack.enter_async_context(contrib.hook(app))
                logger.info(
                    "lifespan_hook_started",
                    extra={"hook": _hook_name(contrib), "priority": contrib.priority},
                )
            yield
        logger.info("lifespan_hooks_stopped", extra={"hooks": len(ordered)})

    return lifespan
