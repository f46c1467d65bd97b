"""Firestore adapter for the DocumentStore port.

Translates the port's filter and mutation types into google-cloud-firestore
equivalents and every ``google.api_core`` failure into :class:`StoreError`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from medikeep.foundation.domain.ports import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    DocumentSnapshot,
    FieldFilter,
    FilterOp,
    StoreError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from google.cloud.firestore import AsyncClient, AsyncWriteBatch

logger = logging.getLogger(__name__)

# Firestore rejects commits with more than 500 writes.
FIRESTORE_MAX_BATCH_SIZE = 500

_OPERATORS: dict[FilterOp, str] = {
    FilterOp.EQUAL: "==",
    FilterOp.ARRAY_CONTAINS: "array_contains",
}


def _to_firestore_value(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, ArrayRemove):
        return firestore.ArrayRemove(list(value.values))
    return value


class FirestoreWriteBatch:
    """WriteBatch backed by a Firestore ``AsyncWriteBatch``."""

    def __init__(self, client: AsyncClient, max_batch_size: int) -> None:
        self._client = client
        self._batch: AsyncWriteBatch = client.batch()
        self._max_batch_size = max_batch_size
        self._size = 0

    def delete(self, path: str) -> None:
        self._batch.delete(self._client.document(path))
        self._size += 1

    def update(self, path: str, mutations: Mapping[str, Any]) -> None:
        field_updates = {key: _to_firestore_value(value) for key, value in mutations.items()}
        self._batch.update(self._client.document(path), field_updates)
        self._size += 1

    def __len__(self) -> int:
        return self._size

    async def commit(self) -> None:
        if self._size > self._max_batch_size:
            msg = f"Batch holds {self._size} writes, limit is {self._max_batch_size}"
            raise StoreError(msg)
        try:
            await self._batch.commit()
        except gcp_exceptions.GoogleAPIError as exc:
            logger.warning(
                "firestore_commit_failed",
                extra={"writes": self._size, "error": str(exc)},
            )
            raise StoreError(str(exc)) from exc


class FirestoreDocumentStore:
    """DocumentStore backed by the async Firestore client.

    Args:
        client: Async Firestore client (see ``FirestoreClientFactory``).
    """

    max_batch_size: int = FIRESTORE_MAX_BATCH_SIZE

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def get(self, path: str) -> DocumentSnapshot | None:
        try:
            snap = await self._client.document(path).get()
        except gcp_exceptions.GoogleAPIError as exc:
            raise StoreError(str(exc)) from exc
        if not snap.exists:
            return None
        return DocumentSnapshot(path=snap.reference.path, data=snap.to_dict() or {})

    async def query(
        self,
        collection_path: str,
        filters: Sequence[FieldFilter] = (),
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        query: Any = self._client.collection(collection_path)
        for f in filters:
            query = query.where(filter=firestore.FieldFilter(f.field, _OPERATORS[f.op], f.value))
        if limit is not None:
            query = query.limit(limit)
        try:
            return [
                DocumentSnapshot(path=snap.reference.path, data=snap.to_dict() or {})
                async for snap in query.stream()
            ]
        except gcp_exceptions.GoogleAPIError as exc:
            raise StoreError(str(exc)) from exc

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self._client, self.max_batch_size)
