"""Routing of document-deletion events to cascades.

A deletion event names the deleted document either by its path
(``spaces/s1/storage_boxes/b1``) or by its full Firestore resource name
(``projects/p/databases/(default)/documents/spaces/s1``). Only two shapes
start a cascade:

- ``spaces/{space_id}`` -> space-deletion cascade
- ``spaces/{space_id}/storage_boxes/{storage_box_id}`` -> storage-box cascade

Everything else is ignored.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from medikeep.domain.spaces.paths import SPACES, STORAGE_BOXES, space_path, storage_box_path

if TYPE_CHECKING:
    from medikeep.domain.spaces.infrastructure.cascade_deletion import (
        CascadeDeletionResult,
        CascadeDeletionService,
    )

logger = logging.getLogger(__name__)

_RESOURCE_PREFIX = re.compile(r"^projects/[^/]+/databases/[^/]+/documents/")


class TriggerKind(StrEnum):
    SPACE_DELETED = "space_deleted"
    STORAGE_BOX_DELETED = "storage_box_deleted"


@dataclass(frozen=True, slots=True)
class DeletionTrigger:
    """A matched deletion event and its path parameters."""

    kind: TriggerKind
    space_id: str
    storage_box_id: str | None = None

    @property
    def document_path(self) -> str:
        """Path of the document whose deletion this trigger reports."""
        if self.storage_box_id is None:
            return space_path(self.space_id)
        return storage_box_path(self.space_id, self.storage_box_id)


def match_deletion_trigger(document: str) -> DeletionTrigger | None:
    """Match a deleted document's path against the cascade patterns.

    Example:
        >>> match_deletion_trigger("spaces/s1/storage_boxes/b1")
        DeletionTrigger(kind=<TriggerKind.STORAGE_BOX_DELETED: 'storage_box_deleted'>, space_id='s1', storage_box_id='b1')
        >>> match_deletion_trigger("users/u1") is None
        True
    """
    path = _RESOURCE_PREFIX.sub("", document.strip().strip("/"))
    segments = path.split("/")
    if any(not segment for segment in segments) or segments[0] != SPACES:
        return None
    if len(segments) == 2:
        return DeletionTrigger(TriggerKind.SPACE_DELETED, space_id=segments[1])
    if len(segments) == 4 and segments[2] == STORAGE_BOXES:
        return DeletionTrigger(
            TriggerKind.STORAGE_BOX_DELETED,
            space_id=segments[1],
            storage_box_id=segments[3],
        )
    return None


async def run_trigger(
    service: CascadeDeletionService,
    trigger: DeletionTrigger,
) -> CascadeDeletionResult:
    """Run the cascade matching ``trigger``."""
    if trigger.kind is TriggerKind.SPACE_DELETED:
        return await service.on_space_deleted(trigger.space_id)
    if trigger.storage_box_id is None:
        msg = "storage_box_deleted trigger requires storage_box_id"
        raise ValueError(msg)
    return await service.on_storage_box_deleted(trigger.space_id, trigger.storage_box_id)


class TriggerDispatcher(Protocol):
    """Hands a matched trigger to whatever executes cascades."""

    async def dispatch(self, trigger: DeletionTrigger) -> None: ...


class InlineTriggerDispatcher:
    """Runs cascades in the calling task (local development, tests)."""

    def __init__(self, service: CascadeDeletionService) -> None:
        self._service = service

    async def dispatch(self, trigger: DeletionTrigger) -> None:
        logger.info(
            "deletion_trigger_running_inline",
            extra={"trigger": trigger.kind, "space_id": trigger.space_id},
        )
        await run_trigger(self._service, trigger)
