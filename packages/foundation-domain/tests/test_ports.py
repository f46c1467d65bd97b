"""Tests for the document store port types and protocol conformance."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from medikeep.foundation.domain.ports.document_store import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    FilterOp,
    WriteBatch,
    _DeleteField,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class _FakeBatch:
    """Fake batch that conforms to WriteBatch protocol."""

    def __init__(self) -> None:
        self.ops: list[tuple[str, str]] = []

    def delete(self, path: str) -> None:
        self.ops.append(("delete", path))

    def update(self, path: str, mutations: Mapping[str, Any]) -> None:
        self.ops.append(("update", path))

    def __len__(self) -> int:
        return len(self.ops)

    async def commit(self) -> None:
        return None


class _FakeStore:
    """Fake store that conforms to DocumentStore protocol."""

    max_batch_size = 10

    async def get(self, path: str) -> DocumentSnapshot | None:
        return None

    async def query(
        self,
        collection_path: str,
        filters: Sequence[FieldFilter] = (),
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        return []

    def batch(self) -> WriteBatch:
        return _FakeBatch()


@pytest.mark.unit
class TestProtocolConformance:
    def test_fake_store_is_document_store(self) -> None:
        assert isinstance(_FakeStore(), DocumentStore)

    def test_fake_batch_is_write_batch(self) -> None:
        assert isinstance(_FakeBatch(), WriteBatch)

    def test_plain_object_is_not_document_store(self) -> None:
        assert not isinstance(object(), DocumentStore)


@pytest.mark.unit
class TestMutationTypes:
    def test_delete_field_is_singleton(self) -> None:
        assert _DeleteField() is DELETE_FIELD
        assert repr(DELETE_FIELD) == "DELETE_FIELD"

    def test_array_union_holds_values(self) -> None:
        assert ArrayUnion(("s1",)).values == ("s1",)

    def test_array_remove_equality(self) -> None:
        assert ArrayRemove(("s1",)) == ArrayRemove(("s1",))

    def test_filter_op_wire_values(self) -> None:
        assert FilterOp.EQUAL == "=="
        assert FilterOp.ARRAY_CONTAINS == "array-contains"

    def test_field_filter(self) -> None:
        f = FieldFilter("spaceIds", FilterOp.ARRAY_CONTAINS, "s1")
        assert (f.field, f.op, f.value) == ("spaceIds", FilterOp.ARRAY_CONTAINS, "s1")


@pytest.mark.unit
class TestDocumentSnapshot:
    def test_id_is_last_segment(self) -> None:
        snap = DocumentSnapshot(path="spaces/s1/medications/m1", data={})
        assert snap.id == "m1"

    def test_default_data_is_empty(self) -> None:
        assert DocumentSnapshot(path="users/u1").data == {}
