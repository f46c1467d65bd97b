"""TaskIQ lifespan hook for broker startup/shutdown.

The API process only enqueues tasks, but the broker still needs its
connection pool opened before the first ``kiq()``.

Priority 150 starts TaskIQ after the Firestore store (75) and auth (100).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError

from medikeep.foundation.application import LifespanContribution
from medikeep.foundation.application.contributions import LIFESPAN_PRIORITY_TASKIQ
from medikeep.infra.taskiq.broker import get_broker
from medikeep.infra.taskiq.errors import TaskIQBrokerError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _taskiq_lifespan(app: Any) -> AsyncIterator[None]:
    """Manage TaskIQ broker lifecycle.

    Args:
        app: The application instance (unused but required by protocol).

    Raises:
        TaskIQBrokerError: If the broker cannot start.
    """
    _broker = get_broker()
    try:
        await _broker.startup()
    except (RedisError, OSError) as exc:
        msg = f"TaskIQ broker failed to start: {exc}"
        raise TaskIQBrokerError(msg) from exc
    logger.info("taskiq_broker_started")

    try:
        yield
    finally:
        await _broker.shutdown()
        logger.info("taskiq_broker_stopped")


lifespan_contribution = LifespanContribution(
    hook=_taskiq_lifespan,
    priority=LIFESPAN_PRIORITY_TASKIQ,
)
