"""REST API for space membership and deletion triggers.

Two routers, both registered through the ``medikeep.routers`` entry point
group:

- ``router``: invite, remove, leave under ``/spaces``.
- ``triggers_router``: ``/triggers/document-deleted``, called by the
  deletion event source (Eventarc, a Firestore listener, an operator),
  which authenticates with the shared ``X-Trigger-Secret`` header.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field

from medikeep.domain.spaces.dependencies import (
    CallerId,
    Dispatcher,
    Membership,
    Store,
    verify_trigger_source,
)
from medikeep.domain.spaces.triggers import match_deletion_trigger
from medikeep.foundation.domain.exceptions import InternalError
from medikeep.foundation.domain.ports import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/spaces", tags=["spaces"])
triggers_router = APIRouter(
    prefix="/triggers",
    tags=["triggers"],
    dependencies=[Depends(verify_trigger_source)],
)


# -- Request / Response models ------------------------------------------------


class InviteMemberRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional so a missing field reaches the service and fails as invalid-argument.
    invited_email: str | None = Field(default=None, alias="invitedEmail")
    role: str | None = None


class MembershipResponse(BaseModel):
    success: bool
    message: str


class DocumentDeletedEvent(BaseModel):
    document: str = Field(description="Deleted document path or full resource name")


class TriggerAcceptedResponse(BaseModel):
    accepted: bool
    trigger: str | None = None


# -- Membership endpoints -----------------------------------------------------


@router.post("/{space_id}/members")
async def invite_member(
    space_id: str,
    body: InviteMemberRequest,
    service: Membership,
    caller_id: CallerId,
) -> MembershipResponse:
    """Invite a registered user, by email, into the space."""
    result = await service.invite(caller_id, space_id, body.invited_email, body.role)
    return MembershipResponse(success=result.success, message=result.message)


@router.delete("/{space_id}/members/{user_id}")
async def remove_member(
    space_id: str,
    user_id: str,
    service: Membership,
    caller_id: CallerId,
) -> MembershipResponse:
    """Remove a member from the space (owners only)."""
    result = await service.remove(caller_id, space_id, user_id)
    return MembershipResponse(success=result.success, message=result.message)


@router.post("/{space_id}/leave")
async def leave_space(
    space_id: str,
    service: Membership,
    caller_id: CallerId,
) -> MembershipResponse:
    """Leave the space."""
    result = await service.leave(caller_id, space_id)
    return MembershipResponse(success=result.success, message=result.message)


# -- Trigger endpoint ---------------------------------------------------------


@triggers_router.post("/document-deleted", status_code=status.HTTP_202_ACCEPTED)
async def document_deleted(
    event: DocumentDeletedEvent,
    store: Store,
    dispatcher: Dispatcher,
) -> TriggerAcceptedResponse:
    """Start the cascade for a deleted space or storage box.

    Paths that match no cascade, and documents that still exist, are
    acknowledged and ignored.
    """
    trigger = match_deletion_trigger(event.document)
    if trigger is None:
        logger.debug("deletion_trigger_ignored", extra={"document": event.document})
        return TriggerAcceptedResponse(accepted=False)

    try:
        existing = await store.get(trigger.document_path)
    except StoreError as exc:
        raise InternalError("Database error", cause=exc) from exc
    if existing is not None:
        logger.warning(
            "deletion_trigger_document_exists",
            extra={"document": trigger.document_path, "trigger": trigger.kind},
        )
        return TriggerAcceptedResponse(accepted=False, trigger=trigger.kind.value)

    await dispatcher.dispatch(trigger)
    return TriggerAcceptedResponse(accepted=True, trigger=trigger.kind.value)
