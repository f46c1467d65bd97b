"""TaskIQ broker configured with Redis Stream.

Redis Stream gives acknowledged, at-least-once delivery; a task that raises
is re-queued by ``SimpleRetryMiddleware`` when it carries the
``retry_on_error`` label, up to ``TASKIQ_MAX_RETRIES`` attempts.

Usage:
    from medikeep.infra.taskiq import broker

    @broker.task(retry_on_error=True)
    async def my_task(arg: str) -> str:
        return f"processed {arg}"

    await my_task.kiq("value")

    # Start worker
    # taskiq worker medikeep.infra.taskiq.broker:broker <task modules>
"""

from __future__ import annotations

from functools import lru_cache

from taskiq import SimpleRetryMiddleware
from taskiq_redis import RedisAsyncResultBackend, RedisStreamBroker

from medikeep.infra.taskiq.settings import get_taskiq_settings


@lru_cache(maxsize=1)
def get_result_backend() -> RedisAsyncResultBackend[str]:
    """Get or create the TaskIQ result backend."""
    settings = get_taskiq_settings()
    return RedisAsyncResultBackend(
        redis_url=settings.redis_url,
        result_ex_time=settings.result_ttl,
    )


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the TaskIQ broker.

    Returns:
        RedisStreamBroker with result backend and retry middleware.
    """
    settings = get_taskiq_settings()
    return (
        RedisStreamBroker(url=settings.redis_url)
        .with_result_backend(get_result_backend())
        .with_middlewares(SimpleRetryMiddleware(default_retry_count=settings.max_retries))
    )


class _LazyBroker:
    """Lazy proxy that defers broker creation until first attribute access.

    The taskiq CLI expects ``module:broker``; the proxy lets that reference
    exist without reading settings at import time.
    """

    _instance: RedisStreamBroker | None = None

    def _get(self) -> RedisStreamBroker:
        if self._instance is None:
            self._instance = get_broker()
        return self._instance

    def __getattr__(self, name: str) -> object:
        return getattr(self._get(), name)


broker: RedisStreamBroker = _LazyBroker()  # type: ignore[assignment]
