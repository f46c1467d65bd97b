"""In-memory DocumentStore for tests and local development.

Behaves like Firestore where the domain can observe it: queries return
documents of exactly one collection in document-id order, batches are
all-or-nothing, updating a missing document fails the commit, and a batch
above ``max_batch_size`` is rejected. Every successful commit is recorded
in :attr:`InMemoryDocumentStore.commits` so callers can assert how work
was sliced.

Example:
    >>> store = InMemoryDocumentStore()
    >>> store.seed("spaces/s1", {"members": {"u1": "owner"}})
    >>> store.data("spaces/s1")["members"]
    {'u1': 'owner'}
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

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

_MISSING = object()


@dataclass(frozen=True, slots=True)
class StagedWrite:
    """One staged operation: ``("delete", path, None)`` or ``("update", path, mutations)``."""

    kind: str
    path: str
    mutations: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """A successfully applied batch."""

    writes: tuple[StagedWrite, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.writes)


def _parent(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def _lookup(data: Mapping[str, Any], field_path: str) -> Any:
    current: Any = data
    for part in field_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _matches(data: Mapping[str, Any], f: FieldFilter) -> bool:
    value = _lookup(data, f.field)
    if value is _MISSING:
        return False
    if f.op is FilterOp.EQUAL:
        return bool(value == f.value)
    if f.op is FilterOp.ARRAY_CONTAINS:
        return isinstance(value, list) and f.value in value
    msg = f"Unsupported filter operator: {f.op}"
    raise StoreError(msg)


def _apply_mutation(data: dict[str, Any], field_path: str, value: Any) -> None:
    *parents, leaf = field_path.split(".")
    target = data
    for part in parents:
        child = target.get(part)
        if not isinstance(child, dict):
            if value is DELETE_FIELD:
                return
            child = {}
            target[part] = child
        target = child

    if value is DELETE_FIELD:
        target.pop(leaf, None)
    elif isinstance(value, ArrayUnion):
        existing = target.get(leaf)
        items = list(existing) if isinstance(existing, list) else []
        items.extend(v for v in value.values if v not in items)
        target[leaf] = items
    elif isinstance(value, ArrayRemove):
        existing = target.get(leaf)
        items = list(existing) if isinstance(existing, list) else []
        target[leaf] = [v for v in items if v not in value.values]
    else:
        target[leaf] = copy.deepcopy(value)


class InMemoryWriteBatch:
    """WriteBatch staging operations against an :class:`InMemoryDocumentStore`."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self._writes: list[StagedWrite] = []
        self._committed = False

    @property
    def writes(self) -> tuple[StagedWrite, ...]:
        return tuple(self._writes)

    def delete(self, path: str) -> None:
        self._writes.append(StagedWrite("delete", path))

    def update(self, path: str, mutations: Mapping[str, Any]) -> None:
        self._writes.append(StagedWrite("update", path, dict(mutations)))

    def __len__(self) -> int:
        return len(self._writes)

    async def commit(self) -> None:
        if self._committed:
            msg = "Batch already committed"
            raise StoreError(msg)
        await asyncio.sleep(0)
        self._store._apply(tuple(self._writes))
        self._committed = True


class InMemoryDocumentStore:
    """Dictionary-backed DocumentStore.

    Args:
        max_batch_size: Largest batch a commit accepts (Firestore: 500).
    """

    def __init__(self, max_batch_size: int = 500) -> None:
        self.max_batch_size = max_batch_size
        self._documents: dict[str, dict[str, Any]] = {}
        self.commits: list[CommitRecord] = []
        self.queries: list[tuple[str, tuple[FieldFilter, ...], int | None]] = []
        self._fail_after: int | None = None
        self._failure_message = "injected commit failure"

    # -- test helpers -------------------------------------------------------

    def seed(self, path: str, data: Mapping[str, Any] | None = None) -> None:
        """Create or overwrite a document without recording a commit."""
        self._documents[path] = copy.deepcopy(dict(data or {}))

    def discard(self, path: str) -> None:
        """Remove a document, leaving its subcollections, without recording a commit."""
        self._documents.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self._documents

    def data(self, path: str) -> dict[str, Any]:
        """Copy of a document's fields. Raises KeyError if absent."""
        return copy.deepcopy(self._documents[path])

    def paths(self, collection_path: str) -> list[str]:
        """Sorted paths of every document directly in a collection."""
        return sorted(p for p in self._documents if _parent(p) == collection_path)

    def fail_commits_after(self, successful: int, message: str = "injected commit failure") -> None:
        """Make every commit after the next ``successful`` ones raise StoreError."""
        self._fail_after = len(self.commits) + successful
        self._failure_message = message

    def clear_failures(self) -> None:
        self._fail_after = None

    # -- DocumentStore ------------------------------------------------------

    async def get(self, path: str) -> DocumentSnapshot | None:
        await asyncio.sleep(0)
        if path not in self._documents:
            return None
        return DocumentSnapshot(path=path, data=copy.deepcopy(self._documents[path]))

    async def query(
        self,
        collection_path: str,
        filters: Sequence[FieldFilter] = (),
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        self.queries.append((collection_path, tuple(filters), limit))
        await asyncio.sleep(0)
        results: list[DocumentSnapshot] = []
        for path in self.paths(collection_path):
            data = self._documents[path]
            if all(_matches(data, f) for f in filters):
                results.append(DocumentSnapshot(path=path, data=copy.deepcopy(data)))
                if limit is not None and len(results) >= limit:
                    break
        return results

    def batch(self) -> InMemoryWriteBatch:
        return InMemoryWriteBatch(self)

    # -- internals ----------------------------------------------------------

    def _apply(self, writes: tuple[StagedWrite, ...]) -> None:
        if self._fail_after is not None and len(self.commits) >= self._fail_after:
            raise StoreError(self._failure_message)
        if len(writes) > self.max_batch_size:
            msg = f"Batch holds {len(writes)} writes, limit is {self.max_batch_size}"
            raise StoreError(msg)

        # Apply to a working copy so a failing write leaves the store untouched.
        working = dict(self._documents)
        for write in writes:
            if write.kind == "delete":
                working.pop(write.path, None)
                continue
            if write.path not in working:
                msg = f"No document to update: {write.path}"
                raise StoreError(msg)
            updated = copy.deepcopy(working[write.path])
            for field_path, value in (write.mutations or {}).items():
                _apply_mutation(updated, field_path, value)
            working[write.path] = updated

        self._documents = working
        self.commits.append(CommitRecord(writes))
