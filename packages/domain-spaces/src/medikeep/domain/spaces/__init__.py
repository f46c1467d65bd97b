"""MediKeep Domain Spaces -- cascading deletion and membership management."""

from medikeep.domain.spaces.infrastructure.cascade_deletion import (
    CascadeDeletionResult,
    CascadeDeletionService,
    DrainResult,
    delete_collection,
    drain_query,
)
from medikeep.domain.spaces.membership import MembershipResult, MembershipService
from medikeep.domain.spaces.settings import SpacesSettings, TriggerMode, get_spaces_settings
from medikeep.domain.spaces.triggers import (
    DeletionTrigger,
    InlineTriggerDispatcher,
    TriggerKind,
    match_deletion_trigger,
    run_trigger,
)

__all__ = [
    "CascadeDeletionResult",
    "CascadeDeletionService",
    "DeletionTrigger",
    "DrainResult",
    "InlineTriggerDispatcher",
    "MembershipResult",
    "MembershipService",
    "SpacesSettings",
    "TriggerKind",
    "TriggerMode",
    "delete_collection",
    "drain_query",
    "get_spaces_settings",
    "match_deletion_trigger",
    "run_trigger",
]
