"""Port interface for the hierarchical document store.

The domain talks to the store only through :class:`DocumentStore` and the
:class:`WriteBatch` it hands out. Adapters (Firestore, in-memory) live in
``medikeep.infra.firestore``.

Store contract:
    - Documents and collections are addressed by slash-separated paths
      (``spaces/s1``, ``spaces/s1/medications``).
    - Queries support equality and array-membership filters plus a limit.
    - A batch accepts staged deletes and updates, up to ``max_batch_size``
      operations, and commits all-or-nothing.
    - Update mutations are keyed by field path; dotted paths address map
      entries (``members.u2``). Values are either plain values (set-field)
      or one of the sentinels :data:`DELETE_FIELD`, :class:`ArrayUnion`,
      :class:`ArrayRemove`.

Example:
    >>> async def scrub(store: DocumentStore, user_path: str, space_id: str) -> None:
    ...     batch = store.batch()
    ...     batch.update(user_path, {"spaceIds": ArrayRemove((space_id,))})
    ...     await batch.commit()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


class StoreError(Exception):
    """Raised when the document store rejects or fails an operation.

    Adapters translate their client library's errors into this type so
    the domain never depends on a specific backend's exception classes.
    """


class FilterOp(StrEnum):
    """Supported query filter operators."""

    EQUAL = "=="
    ARRAY_CONTAINS = "array-contains"


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """Single query predicate: ``field <op> value``."""

    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True, slots=True)
class ArrayUnion:
    """Add-to-set mutation: append each value not already present."""

    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class ArrayRemove:
    """Remove-from-set mutation: drop every occurrence of each value."""

    values: tuple[Any, ...]


class _DeleteField:
    """Sentinel type for the delete-field mutation."""

    _instance: _DeleteField | None = None

    def __new__(cls) -> _DeleteField:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """Read-only view of a document at query time.

    Attributes:
        path: Full document path (``spaces/s1/medications/m1``).
        data: Document fields. Empty dict for an empty document.
    """

    path: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        """Last path segment (the document id)."""
        return self.path.rsplit("/", 1)[-1]


@runtime_checkable
class WriteBatch(Protocol):
    """Atomic batch of staged writes.

    Staging never touches the store. :meth:`commit` applies every staged
    operation or none of them, and raises :class:`StoreError` on failure
    (including when more than the store's batch limit was staged).
    """

    def delete(self, path: str) -> None:
        """Stage deletion of the document at ``path``."""
        ...

    def update(self, path: str, mutations: Mapping[str, Any]) -> None:
        """Stage field mutations on the existing document at ``path``.

        The commit fails if the document does not exist.
        """
        ...

    def __len__(self) -> int:
        """Number of staged operations."""
        ...

    async def commit(self) -> None:
        """Apply all staged operations atomically."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Port for the hierarchical document store.

    Attributes:
        max_batch_size: Largest number of operations a single batch may hold.
    """

    max_batch_size: int

    async def get(self, path: str) -> DocumentSnapshot | None:
        """Fetch a document, or None if it does not exist."""
        ...

    async def query(
        self,
        collection_path: str,
        filters: Sequence[FieldFilter] = (),
        limit: int | None = None,
    ) -> list[DocumentSnapshot]:
        """Return documents of a collection matching every filter.

        Args:
            collection_path: Path of the collection to query.
            filters: Predicates, combined with AND.
            limit: Maximum number of documents to return.
        """
        ...

    def batch(self) -> WriteBatch:
        """Create an empty write batch bound to this store."""
        ...
