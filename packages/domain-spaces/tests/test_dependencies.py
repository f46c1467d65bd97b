"""Unit tests for the spaces FastAPI dependencies."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from medikeep.domain.spaces.dependencies import (
    get_cascade_service,
    get_document_store,
    get_trigger_dispatcher,
    verify_trigger_source,
)
from medikeep.domain.spaces.infrastructure.cascade_deletion import CascadeDeletionService
from medikeep.domain.spaces.infrastructure.tasks import TaskiqTriggerDispatcher
from medikeep.domain.spaces.settings import SpacesSettings, TriggerMode
from medikeep.domain.spaces.triggers import InlineTriggerDispatcher
from medikeep.foundation.domain.exceptions import AuthenticationError, InternalError
from medikeep.infra.firestore.memory import InMemoryDocumentStore


def _request(store: object) -> MagicMock:
    request = MagicMock()
    request.app.state = SimpleNamespace(document_store=store)
    return request


@pytest.mark.unit
class TestGetDocumentStore:
    def test_returns_store_from_app_state(self) -> None:
        store = InMemoryDocumentStore()
        assert get_document_store(_request(store)) is store

    def test_missing_store_is_internal_error(self) -> None:
        with pytest.raises(InternalError, match="not configured"):
            get_document_store(_request(None))


@pytest.mark.unit
class TestGetTriggerDispatcher:
    def test_inline_mode(self) -> None:
        service = CascadeDeletionService(InMemoryDocumentStore())
        dispatcher = get_trigger_dispatcher(service, SpacesSettings(trigger_mode=TriggerMode.INLINE))
        assert isinstance(dispatcher, InlineTriggerDispatcher)

    def test_queue_mode(self) -> None:
        service = CascadeDeletionService(InMemoryDocumentStore())
        dispatcher = get_trigger_dispatcher(service, SpacesSettings(trigger_mode=TriggerMode.QUEUE))
        assert isinstance(dispatcher, TaskiqTriggerDispatcher)

    def test_cascade_service_uses_configured_batch_size(self) -> None:
        service = get_cascade_service(InMemoryDocumentStore(), SpacesSettings(delete_batch_size=7))
        assert service._batch_size == 7


@pytest.mark.unit
class TestVerifyTriggerSource:
    def test_matching_secret_passes(self) -> None:
        verify_trigger_source(SpacesSettings(trigger_secret="s3cret"), "s3cret")

    @pytest.mark.parametrize("presented", [None, "", "other"])
    def test_missing_or_wrong_secret_rejected(self, presented: str | None) -> None:
        with pytest.raises(AuthenticationError, match="invalid trigger secret"):
            verify_trigger_source(SpacesSettings(trigger_secret="s3cret"), presented)

    def test_unconfigured_secret_rejects_everything(self) -> None:
        with pytest.raises(AuthenticationError, match="not configured"):
            verify_trigger_source(SpacesSettings(trigger_secret=None), "anything")
