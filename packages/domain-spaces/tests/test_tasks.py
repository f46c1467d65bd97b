"""Unit tests for the TaskIQ cascade tasks and dispatcher."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from medikeep.domain.spaces.infrastructure.tasks import (
    TaskiqTriggerDispatcher,
    close_document_store,
    on_space_deleted_task,
    on_storage_box_deleted_task,
    open_document_store,
)
from medikeep.domain.spaces.triggers import DeletionTrigger, TriggerKind
from medikeep.infra.firestore.memory import InMemoryDocumentStore
from medikeep.infra.firestore.store import FirestoreDocumentStore

_TASKS = "medikeep.domain.spaces.infrastructure.tasks"


def _context(store: InMemoryDocumentStore) -> MagicMock:
    context = MagicMock()
    context.state = SimpleNamespace(document_store=store)
    return context


@pytest.mark.unit
class TestCascadeTasks:
    def test_tasks_are_retried_on_error(self) -> None:
        assert on_space_deleted_task.labels["retry_on_error"] is True
        assert on_storage_box_deleted_task.labels["retry_on_error"] is True

    def test_task_names(self) -> None:
        assert on_space_deleted_task.task_name == "spaces.on_space_deleted"
        assert on_storage_box_deleted_task.task_name == "spaces.on_storage_box_deleted"

    @pytest.mark.asyncio
    async def test_space_task_uses_worker_store(self) -> None:
        store = InMemoryDocumentStore()
        store.seed("spaces/s1/medications/m1", {"storageBoxId": "b1"})
        store.seed("users/u1", {"spaceIds": ["s1"]})

        result = await on_space_deleted_task.original_func("s1", context=_context(store))

        assert result["medications_deleted"] == 1
        assert result["profiles_scrubbed"] == 1
        assert store.data("users/u1")["spaceIds"] == []

    @pytest.mark.asyncio
    async def test_storage_box_task(self) -> None:
        store = InMemoryDocumentStore()
        store.seed("spaces/s1/medications/m1", {"storageBoxId": "b1"})

        result = await on_storage_box_deleted_task.original_func(
            "s1", "b1", context=_context(store)
        )

        assert result["medications_deleted"] == 1
        assert result["commits"] == 1


@pytest.mark.unit
class TestTaskiqTriggerDispatcher:
    @pytest.mark.asyncio
    async def test_space_trigger_enqueues_space_task(self) -> None:
        with patch.object(
            on_space_deleted_task, "kiq", AsyncMock(return_value=MagicMock(task_id="t1"))
        ) as kiq:
            await TaskiqTriggerDispatcher().dispatch(
                DeletionTrigger(TriggerKind.SPACE_DELETED, "s1")
            )
        kiq.assert_awaited_once_with("s1")

    @pytest.mark.asyncio
    async def test_storage_box_trigger_enqueues_box_task(self) -> None:
        with patch.object(
            on_storage_box_deleted_task, "kiq", AsyncMock(return_value=MagicMock(task_id="t2"))
        ) as kiq:
            await TaskiqTriggerDispatcher().dispatch(
                DeletionTrigger(TriggerKind.STORAGE_BOX_DELETED, "s1", storage_box_id="b1")
            )
        kiq.assert_awaited_once_with("s1", "b1")


@pytest.mark.unit
class TestWorkerLifecycle:
    @pytest.mark.asyncio
    async def test_startup_opens_firestore_store(self) -> None:
        factory = MagicMock()
        state = SimpleNamespace()
        with (
            patch(f"{_TASKS}.configure_logging") as configure,
            patch(f"{_TASKS}.get_firestore_factory", return_value=factory),
        ):
            await open_document_store(state)  # type: ignore[arg-type]

        configure.assert_called_once_with()
        assert isinstance(state.document_store, FirestoreDocumentStore)
        factory.get_client.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_shutdown_closes_factory(self) -> None:
        factory = MagicMock()
        state = SimpleNamespace(document_store=InMemoryDocumentStore())
        with patch(f"{_TASKS}.get_firestore_factory", return_value=factory):
            await close_document_store(state)  # type: ignore[arg-type]

        assert state.document_store is None
        factory.close.assert_called_once_with()
