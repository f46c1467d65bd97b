"""Store-facing services for the spaces domain."""

from medikeep.domain.spaces.infrastructure.cascade_deletion import (
    CascadeDeletionResult,
    CascadeDeletionService,
    DrainResult,
    delete_collection,
    drain_query,
)

__all__ = [
    "CascadeDeletionResult",
    "CascadeDeletionService",
    "DrainResult",
    "delete_collection",
    "drain_query",
]
