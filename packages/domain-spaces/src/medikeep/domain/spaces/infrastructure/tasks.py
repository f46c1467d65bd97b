"""TaskIQ tasks executing deletion cascades in the worker.

The worker opens its own Firestore-backed store on ``WORKER_STARTUP`` and
tasks receive it through the TaskIQ context. Tasks carry the
``retry_on_error`` label so the broker's retry middleware re-runs a cascade
whose commit failed; cascades are idempotent, so a retry resumes where the
failed run stopped.

Run the worker with::

    taskiq worker medikeep.infra.taskiq.broker:broker medikeep.domain.spaces.infrastructure.tasks
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from taskiq import Context, TaskiqDepends, TaskiqEvents, TaskiqState

from medikeep.domain.spaces.infrastructure.cascade_deletion import CascadeDeletionService
from medikeep.domain.spaces.settings import get_spaces_settings
from medikeep.domain.spaces.triggers import DeletionTrigger, TriggerKind
from medikeep.infra.firestore.client import get_firestore_factory
from medikeep.infra.firestore.store import FirestoreDocumentStore
from medikeep.infra.observability import configure_logging
from medikeep.infra.taskiq import broker

logger = logging.getLogger(__name__)


@broker.on_event(TaskiqEvents.WORKER_STARTUP)
async def open_document_store(state: TaskiqState) -> None:
    """Configure logging and attach a Firestore document store to the worker state."""
    configure_logging()
    state.document_store = FirestoreDocumentStore(get_firestore_factory().get_client())
    logger.info("worker_document_store_opened")


@broker.on_event(TaskiqEvents.WORKER_SHUTDOWN)
async def close_document_store(state: TaskiqState) -> None:
    state.document_store = None
    get_firestore_factory().close()


def _cascade_service(context: Context) -> CascadeDeletionService:
    return CascadeDeletionService(
        context.state.document_store,
        batch_size=get_spaces_settings().delete_batch_size,
    )


@broker.task(task_name="spaces.on_space_deleted", retry_on_error=True)
async def on_space_deleted_task(
    space_id: str,
    context: Context = TaskiqDepends(),
) -> dict[str, Any]:
    """Cascade a deleted space."""
    result = await _cascade_service(context).on_space_deleted(space_id)
    return asdict(result)


@broker.task(task_name="spaces.on_storage_box_deleted", retry_on_error=True)
async def on_storage_box_deleted_task(
    space_id: str,
    storage_box_id: str,
    context: Context = TaskiqDepends(),
) -> dict[str, Any]:
    """Cascade a deleted storage box."""
    result = await _cascade_service(context).on_storage_box_deleted(space_id, storage_box_id)
    return asdict(result)


class TaskiqTriggerDispatcher:
    """Enqueues cascades on the TaskIQ broker."""

    async def dispatch(self, trigger: DeletionTrigger) -> None:
        if trigger.kind is TriggerKind.SPACE_DELETED:
            task = await on_space_deleted_task.kiq(trigger.space_id)
        else:
            task = await on_storage_box_deleted_task.kiq(
                trigger.space_id,
                trigger.storage_box_id,
            )
        logger.info(
            "deletion_trigger_enqueued",
            extra={"trigger": trigger.kind, "space_id": trigger.space_id, "task_id": task.task_id},
        )
