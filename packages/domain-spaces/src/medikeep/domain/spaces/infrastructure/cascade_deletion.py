"""Cascade deletion for deleted spaces and storage boxes.

The store has no cascading delete and no transaction spanning an unbounded
number of descendants, so dependents are removed by draining a bounded query
in successive batches: fetch up to ``batch_size`` matching documents, stage
one mutation per document, commit, repeat until the query comes back empty.
Each iteration re-issues the same query (no cursor) because the staged
mutation makes every processed document stop matching.

Batches are atomic individually but not as a whole. A failed commit aborts
the cascade with the store's error; batches already committed stay applied.
Re-running a cascade is a no-op once its dependents are gone, which makes
the handlers safe for trigger-level retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from medikeep.domain.spaces.paths import (
    FIELD_SPACE_IDS,
    FIELD_STORAGE_BOX_ID,
    USERS,
    medications_path,
    storage_boxes_path,
)
from medikeep.domain.spaces.settings import DEFAULT_DELETE_BATCH_SIZE
from medikeep.foundation.domain.ports import ArrayRemove, FieldFilter, FilterOp

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from medikeep.foundation.domain.ports import DocumentSnapshot, DocumentStore, WriteBatch

    StageFn = Callable[[WriteBatch, DocumentSnapshot], None]

logger = logging.getLogger(__name__)


@dataclass
class DrainResult:
    """Outcome of draining one query.

    Attributes:
        documents: Documents deleted or updated.
        commits: Batches committed.
    """

    documents: int = 0
    commits: int = 0


def _stage_delete(batch: WriteBatch, snapshot: DocumentSnapshot) -> None:
    batch.delete(snapshot.path)


async def drain_query(
    store: DocumentStore,
    collection_path: str,
    filters: Sequence[FieldFilter],
    stage: StageFn,
    batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
) -> DrainResult:
    """Apply ``stage`` to every document matching a query, one bounded batch at a time.

    ``stage`` must make the document stop matching ``filters`` (delete it, or
    remove the filtered value from the filtered array), otherwise the loop
    never drains.

    Args:
        store: Document store to query and write.
        collection_path: Collection to drain.
        filters: Query predicates; empty drains the whole collection.
        stage: Stages the mutation for one matched document.
        batch_size: Documents per query and per commit.

    Returns:
        DrainResult with the number of documents processed and commits made.

    Raises:
        ValueError: If ``batch_size`` is outside ``1..store.max_batch_size``.
        StoreError: If a query or commit fails. Earlier batches stay applied.
    """
    if not 1 <= batch_size <= store.max_batch_size:
        msg = f"batch_size must be between 1 and {store.max_batch_size}, got {batch_size}"
        raise ValueError(msg)

    result = DrainResult()
    while True:
        snapshots = await store.query(collection_path, filters, limit=batch_size)
        if not snapshots:
            return result

        batch = store.batch()
        for snapshot in snapshots:
            stage(batch, snapshot)
        await batch.commit()

        result.documents += len(snapshots)
        result.commits += 1
        logger.debug(
            "drain_batch_committed",
            extra={
                "collection_path": collection_path,
                "batch_documents": len(snapshots),
                "total_documents": result.documents,
                "commits": result.commits,
            },
        )
        # Let other tasks run between batches.
        await asyncio.sleep(0)


async def delete_collection(
    store: DocumentStore,
    collection_path: str,
    batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
) -> DrainResult:
    """Delete every document of a collection in batches of ``batch_size``.

    An empty collection costs one query and zero writes. A collection of K
    documents takes ceil(K / batch_size) commits.
    """
    return await drain_query(store, collection_path, (), _stage_delete, batch_size)


@dataclass
class CascadeDeletionResult:
    """Result of a cascade.

    Attributes:
        storage_boxes_deleted: StorageBox documents removed.
        medications_deleted: Medication documents removed.
        profiles_scrubbed: UserProfiles whose back-reference was removed.
        commits: Total batches committed.
        categories_processed: Dependent categories handled, in order.
    """

    storage_boxes_deleted: int = 0
    medications_deleted: int = 0
    profiles_scrubbed: int = 0
    commits: int = 0
    categories_processed: list[str] = field(default_factory=list)


class CascadeDeletionService:
    """Removes the dependents of deleted spaces and storage boxes.

    The deletion event is authoritative: the service never checks that the
    parent document is actually gone.

    Deletion targets for a space:
    1. Every StorageBox under the space.
    2. Every Medication under the space.
    3. The space id in each member's ``spaceIds`` (remove-from-set).

    Deletion targets for a storage box:
    1. Every Medication of the same space whose ``storageBoxId`` is the box.
    """

    def __init__(
        self,
        store: DocumentStore,
        batch_size: int = DEFAULT_DELETE_BATCH_SIZE,
    ) -> None:
        self._store = store
        self._batch_size = batch_size

    async def on_space_deleted(self, space_id: str) -> CascadeDeletionResult:
        """Delete a space's sub-collections and scrub member back-references.

        Args:
            space_id: Identity of the deleted space.

        Returns:
            CascadeDeletionResult with per-category counts.
        """
        result = CascadeDeletionResult()
        logger.info("space_cascade_started", extra={"space_id": space_id})

        boxes = await delete_collection(self._store, storage_boxes_path(space_id), self._batch_size)
        result.storage_boxes_deleted = boxes.documents
        result.commits += boxes.commits
        result.categories_processed.append("storage_boxes")

        medications = await delete_collection(
            self._store, medications_path(space_id), self._batch_size
        )
        result.medications_deleted = medications.documents
        result.commits += medications.commits
        result.categories_processed.append("medications")

        def _stage_scrub(batch: WriteBatch, snapshot: DocumentSnapshot) -> None:
            batch.update(snapshot.path, {FIELD_SPACE_IDS: ArrayRemove((space_id,))})

        profiles = await drain_query(
            self._store,
            USERS,
            (FieldFilter(FIELD_SPACE_IDS, FilterOp.ARRAY_CONTAINS, space_id),),
            _stage_scrub,
            self._batch_size,
        )
        result.profiles_scrubbed = profiles.documents
        result.commits += profiles.commits
        result.categories_processed.append("profile_back_references")

        logger.info(
            "space_cascade_completed",
            extra={
                "space_id": space_id,
                "storage_boxes_deleted": result.storage_boxes_deleted,
                "medications_deleted": result.medications_deleted,
                "profiles_scrubbed": result.profiles_scrubbed,
                "commits": result.commits,
            },
        )
        return result

    async def on_storage_box_deleted(
        self,
        space_id: str,
        storage_box_id: str,
    ) -> CascadeDeletionResult:
        """Delete the medications that referenced a deleted storage box."""
        result = CascadeDeletionResult()
        logger.info(
            "storage_box_cascade_started",
            extra={"space_id": space_id, "storage_box_id": storage_box_id},
        )

        medications = await drain_query(
            self._store,
            medications_path(space_id),
            (FieldFilter(FIELD_STORAGE_BOX_ID, FilterOp.EQUAL, storage_box_id),),
            _stage_delete,
            self._batch_size,
        )
        result.medications_deleted = medications.documents
        result.commits = medications.commits
        result.categories_processed.append("medications")

        logger.info(
            "storage_box_cascade_completed",
            extra={
                "space_id": space_id,
                "storage_box_id": storage_box_id,
                "medications_deleted": result.medications_deleted,
                "commits": result.commits,
            },
        )
        return result
