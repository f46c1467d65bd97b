"""Unit tests for the Firestore DocumentStore adapter."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from medikeep.foundation.domain.ports import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentStore,
    FieldFilter,
    FilterOp,
    StoreError,
)
from medikeep.infra.firestore.store import FirestoreDocumentStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


def _snapshot(path: str, data: dict[str, Any] | None, exists: bool = True) -> MagicMock:
    snap = MagicMock()
    snap.exists = exists
    snap.reference.path = path
    snap.to_dict.return_value = data
    return snap


def _stream(*snaps: MagicMock) -> Any:
    async def _gen() -> AsyncIterator[MagicMock]:
        for snap in snaps:
            yield snap

    return _gen


@pytest.mark.unit
class TestFirestoreDocumentStore:
    def test_conforms_to_port(self) -> None:
        assert isinstance(FirestoreDocumentStore(MagicMock()), DocumentStore)
        assert FirestoreDocumentStore.max_batch_size == 500

    @pytest.mark.asyncio
    async def test_get_existing(self) -> None:
        client = MagicMock()
        client.document.return_value.get = AsyncMock(
            return_value=_snapshot("spaces/s1", {"members": {"u1": "owner"}})
        )

        snap = await FirestoreDocumentStore(client).get("spaces/s1")

        client.document.assert_called_once_with("spaces/s1")
        assert snap is not None
        assert snap.id == "s1"
        assert snap.data == {"members": {"u1": "owner"}}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        client = MagicMock()
        client.document.return_value.get = AsyncMock(
            return_value=_snapshot("spaces/s9", None, exists=False)
        )
        assert await FirestoreDocumentStore(client).get("spaces/s9") is None

    @pytest.mark.asyncio
    async def test_get_translates_api_errors(self) -> None:
        client = MagicMock()
        client.document.return_value.get = AsyncMock(
            side_effect=gcp_exceptions.ServiceUnavailable("down")
        )
        with pytest.raises(StoreError, match="down"):
            await FirestoreDocumentStore(client).get("spaces/s1")

    @pytest.mark.asyncio
    async def test_query_applies_filters_and_limit(self) -> None:
        client = MagicMock()
        collection = client.collection.return_value
        filtered = collection.where.return_value
        limited = filtered.limit.return_value
        limited.stream = _stream(_snapshot("users/u1", {"spaceIds": ["s1"]}))

        result = await FirestoreDocumentStore(client).query(
            "users",
            [FieldFilter("spaceIds", FilterOp.ARRAY_CONTAINS, "s1")],
            limit=100,
        )

        client.collection.assert_called_once_with("users")
        native = collection.where.call_args.kwargs["filter"]
        assert native.field_path == "spaceIds"
        assert native.op_string == "array_contains"
        assert native.value == "s1"
        filtered.limit.assert_called_once_with(100)
        assert [s.path for s in result] == ["users/u1"]

    @pytest.mark.asyncio
    async def test_query_without_filters_streams_collection(self) -> None:
        client = MagicMock()
        client.collection.return_value.stream = _stream(
            _snapshot("spaces/s1/medications/m1", {}),
            _snapshot("spaces/s1/medications/m2", None),
        )

        result = await FirestoreDocumentStore(client).query("spaces/s1/medications")

        assert [s.id for s in result] == ["m1", "m2"]
        assert result[1].data == {}

    @pytest.mark.asyncio
    async def test_query_translates_api_errors(self) -> None:
        async def _failing() -> AsyncIterator[MagicMock]:
            raise gcp_exceptions.DeadlineExceeded("slow")
            yield  # pragma: no cover

        client = MagicMock()
        client.collection.return_value.stream = _failing
        with pytest.raises(StoreError, match="slow"):
            await FirestoreDocumentStore(client).query("users")


@pytest.mark.unit
class TestFirestoreWriteBatch:
    @pytest.mark.asyncio
    async def test_update_translates_mutations(self) -> None:
        client = MagicMock()
        native_batch = client.batch.return_value
        native_batch.commit = AsyncMock()
        batch = FirestoreDocumentStore(client).batch()

        batch.update(
            "spaces/s1",
            {"members.u2": DELETE_FIELD, "spaceIds": ArrayRemove(("s1",)), "name": "Home"},
        )
        batch.update("users/u2", {"spaceIds": ArrayUnion(("s1",))})
        await batch.commit()

        first = native_batch.update.call_args_list[0].args[1]
        assert first["members.u2"] is firestore.DELETE_FIELD
        assert isinstance(first["spaceIds"], firestore.ArrayRemove)
        assert first["name"] == "Home"
        second = native_batch.update.call_args_list[1].args[1]
        assert isinstance(second["spaceIds"], firestore.ArrayUnion)
        assert len(batch) == 2
        native_batch.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_stages_document_reference(self) -> None:
        client = MagicMock()
        client.batch.return_value.commit = AsyncMock()
        batch = FirestoreDocumentStore(client).batch()

        batch.delete("spaces/s1/storage_boxes/b1")

        client.document.assert_called_with("spaces/s1/storage_boxes/b1")
        client.batch.return_value.delete.assert_called_once_with(client.document.return_value)

    @pytest.mark.asyncio
    async def test_commit_over_limit_fails_without_calling_backend(self) -> None:
        client = MagicMock()
        client.batch.return_value.commit = AsyncMock()
        store = FirestoreDocumentStore(client)
        batch = store.batch()
        for i in range(store.max_batch_size + 1):
            batch.delete(f"users/u{i}")

        with pytest.raises(StoreError, match="limit is 500"):
            await batch.commit()
        client.batch.return_value.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_translates_api_errors(self) -> None:
        client = MagicMock()
        client.batch.return_value.commit = AsyncMock(
            side_effect=gcp_exceptions.NotFound("no document to update")
        )
        batch = FirestoreDocumentStore(client).batch()
        batch.update("users/u9", {"spaceIds": ArrayRemove(("s1",))})

        with pytest.raises(StoreError, match="no document to update"):
            await batch.commit()
