"""FastAPI dependencies for the spaces routers.

The document store is created by the Firestore lifespan hook and lives on
``app.state.document_store``; everything here is built per request from it.
Tests swap the store by setting ``app.state.document_store`` or override
these dependencies with ``app.dependency_overrides``.
"""

from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from medikeep.domain.spaces.infrastructure.cascade_deletion import CascadeDeletionService
from medikeep.domain.spaces.membership import MembershipService
from medikeep.domain.spaces.settings import SpacesSettings, TriggerMode, get_spaces_settings
from medikeep.domain.spaces.triggers import InlineTriggerDispatcher, TriggerDispatcher
from medikeep.foundation.application import get_caller_id
from medikeep.foundation.domain.exceptions import AuthenticationError, InternalError
from medikeep.foundation.domain.ports import DocumentStore

logger = logging.getLogger(__name__)

TRIGGER_SECRET_HEADER = "X-Trigger-Secret"


def get_document_store(request: Request) -> DocumentStore:
    """Document store attached to the running application.

    Raises:
        InternalError: If no store was configured at startup.
    """
    store: DocumentStore | None = getattr(request.app.state, "document_store", None)
    if store is None:
        msg = "Document store is not configured"
        raise InternalError(msg)
    return store


def get_membership_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> MembershipService:
    return MembershipService(store)


def get_cascade_service(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    settings: Annotated[SpacesSettings, Depends(get_spaces_settings)],
) -> CascadeDeletionService:
    return CascadeDeletionService(store, batch_size=settings.delete_batch_size)


def get_trigger_dispatcher(
    service: Annotated[CascadeDeletionService, Depends(get_cascade_service)],
    settings: Annotated[SpacesSettings, Depends(get_spaces_settings)],
) -> TriggerDispatcher:
    """Inline dispatcher in ``inline`` mode, the TaskIQ one otherwise."""
    if settings.trigger_mode is TriggerMode.INLINE:
        return InlineTriggerDispatcher(service)

    from medikeep.domain.spaces.infrastructure.tasks import TaskiqTriggerDispatcher

    return TaskiqTriggerDispatcher()


CallerId = Annotated[str | None, Depends(get_caller_id)]
Membership = Annotated[MembershipService, Depends(get_membership_service)]
Dispatcher = Annotated[TriggerDispatcher, Depends(get_trigger_dispatcher)]


def verify_trigger_source(
    settings: Annotated[SpacesSettings, Depends(get_spaces_settings)],
    secret: Annotated[str | None, Header(alias=TRIGGER_SECRET_HEADER)] = None,
) -> None:
    """Reject trigger calls that do not carry the configured shared secret.

    Raises:
        AuthenticationError: If no secret is configured, or the header is
            missing or does not match.
    """
    expected = settings.trigger_secret
    if expected is None:
        logger.error("trigger_secret_not_configured")
        msg = "Trigger endpoint is not configured"
        raise AuthenticationError(msg, auth_error="invalid_token")
    if not secret or not hmac.compare_digest(
        secret.encode(), expected.get_secret_value().encode()
    ):
        logger.warning("trigger_source_rejected", extra={"secret_present": bool(secret)})
        msg = "Missing or invalid trigger secret"
        raise AuthenticationError(msg, auth_error="invalid_token")


Store = Annotated[DocumentStore, Depends(get_document_store)]
