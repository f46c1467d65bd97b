"""Membership operations: invite, remove, leave.

A space's membership is stored twice: as ``members.<uid> = role`` on the
Space document and as the space id in the user's ``spaceIds``. Every
operation updates both views in a single two-write batch, so they change
together or not at all.

Each operation validates inputs, reads the authoritative state, authorizes
the caller and checks the owner invariant before staging anything. A
rejected operation therefore leaves the store untouched. Store failures
surface as :class:`InternalError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from medikeep.domain.spaces.paths import (
    FIELD_EMAIL,
    FIELD_SPACE_IDS,
    USERS,
    member_field,
    space_path,
    user_path,
)
from medikeep.foundation.domain.exceptions import (
    AlreadyExistsError,
    DomainError,
    FailedPreconditionError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from medikeep.foundation.domain.ports import (
    DELETE_FIELD,
    ArrayRemove,
    ArrayUnion,
    FieldFilter,
    FilterOp,
    StoreError,
)
from medikeep.foundation.domain.space_value_objects import SpaceMembers

if TYPE_CHECKING:
    from medikeep.foundation.domain.ports import DocumentStore

logger = logging.getLogger(__name__)

MSG_MEMBER_INVITED = "Member invited and profile updated."
MSG_MEMBER_REMOVED = "Member removed from space."
MSG_SPACE_LEFT = "Left space."


@dataclass(frozen=True, slots=True)
class MembershipResult:
    """Successful outcome of a membership operation."""

    success: bool
    message: str


def _required(name: str, value: str | None) -> str:
    if not value:
        raise InvalidArgumentError(name, "is required")
    return value


class MembershipService:
    """Invite, remove and leave, keeping both membership views in step.

    Args:
        store: Document store holding spaces and user profiles.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def invite(
        self,
        caller_id: str | None,
        space_id: str | None,
        invited_email: str | None,
        role: str | None,
    ) -> MembershipResult:
        """Add the user registered under ``invited_email`` to a space.

        Raises:
            InvalidArgumentError: A parameter is missing.
            NotFoundError: No user has that email, or the space does not exist.
            PermissionDeniedError: The caller is not an owner of the space.
            AlreadyExistsError: The invitee is already a member.
            InternalError: The store failed.
        """
        caller_id = _required("caller_id", caller_id)
        space_id = _required("space_id", space_id)
        invited_email = _required("invited_email", invited_email)
        role = _required("role", role)
        try:
            matches = await self._store.query(
                USERS,
                (FieldFilter(FIELD_EMAIL, FilterOp.EQUAL, invited_email),),
                limit=1,
            )
            if not matches:
                raise NotFoundError("User", invited_email, lookup="email")
            invitee_id = matches[0].id

            space = await self._store.get(space_path(space_id))
            if space is None:
                raise NotFoundError("Space", space_id)

            members = SpaceMembers.from_document(space.data)
            if not members.is_owner(caller_id):
                raise PermissionDeniedError(
                    "Only an owner can invite members",
                    context={"space_id": space_id, "caller_id": caller_id},
                )
            if invitee_id in members:
                raise AlreadyExistsError(
                    "User is already a member of the space",
                    space_id=space_id,
                    user_id=invitee_id,
                )

            batch = self._store.batch()
            batch.update(space_path(space_id), {member_field(invitee_id): role})
            batch.update(user_path(invitee_id), {FIELD_SPACE_IDS: ArrayUnion((space_id,))})
            await batch.commit()
        except DomainError as exc:
            logger.info(
                "member_invite_rejected",
                extra={"space_id": space_id, "caller_id": caller_id, "error_code": exc.error_code},
            )
            raise
        except StoreError as exc:
            logger.exception(
                "member_invite_store_failure",
                extra={"space_id": space_id, "caller_id": caller_id},
            )
            raise InternalError("Database error", cause=exc) from exc

        logger.info(
            "member_invited",
            extra={"space_id": space_id, "user_id": invitee_id, "role": role},
        )
        return MembershipResult(success=True, message=MSG_MEMBER_INVITED)

    async def remove(
        self,
        caller_id: str | None,
        space_id: str | None,
        target_user_id: str | None,
    ) -> MembershipResult:
        """Remove ``target_user_id`` from a space on behalf of an owner.

        A missing space reads as an empty member map, so the caller is
        rejected as a non-owner. An owner may remove themself through this
        path unless they are the last owner.

        Raises:
            InvalidArgumentError: A parameter is missing.
            PermissionDeniedError: The caller is not an owner of the space.
            FailedPreconditionError: The target is the space's sole owner.
            InternalError: The store failed.
        """
        caller_id = _required("caller_id", caller_id)
        space_id = _required("space_id", space_id)
        target_user_id = _required("target_user_id", target_user_id)

        try:
            space = await self._store.get(space_path(space_id))
            members = SpaceMembers.from_document(space.data if space else None)

            if not members.is_owner(caller_id):
                raise PermissionDeniedError(
                    "Only an owner can remove members",
                    context={"space_id": space_id, "caller_id": caller_id},
                )
            if members.removal_orphans_space(target_user_id):
                raise FailedPreconditionError(
                    "Cannot remove the last owner of the space",
                    space_id=space_id,
                    user_id=target_user_id,
                )

            await self._commit_departure(space_id, target_user_id)
        except DomainError as exc:
            logger.info(
                "member_remove_rejected",
                extra={"space_id": space_id, "caller_id": caller_id, "error_code": exc.error_code},
            )
            raise
        except StoreError as exc:
            logger.exception(
                "member_remove_store_failure",
                extra={"space_id": space_id, "caller_id": caller_id},
            )
            raise InternalError("Database error", cause=exc) from exc

        logger.info(
            "member_removed",
            extra={"space_id": space_id, "user_id": target_user_id, "caller_id": caller_id},
        )
        return MembershipResult(success=True, message=MSG_MEMBER_REMOVED)

    async def leave(self, caller_id: str | None, space_id: str | None) -> MembershipResult:
        """Remove the caller from a space.

        Raises:
            InvalidArgumentError: A parameter is missing.
            FailedPreconditionError: The caller is the space's sole owner.
            InternalError: The store failed.
        """
        caller_id = _required("caller_id", caller_id)
        space_id = _required("space_id", space_id)

        try:
            space = await self._store.get(space_path(space_id))
            members = SpaceMembers.from_document(space.data if space else None)

            if members.removal_orphans_space(caller_id):
                raise FailedPreconditionError(
                    "The space must keep at least one owner",
                    space_id=space_id,
                    user_id=caller_id,
                )

            await self._commit_departure(space_id, caller_id)
        except DomainError as exc:
            logger.info(
                "member_leave_rejected",
                extra={"space_id": space_id, "caller_id": caller_id, "error_code": exc.error_code},
            )
            raise
        except StoreError as exc:
            logger.exception(
                "member_leave_store_failure",
                extra={"space_id": space_id, "caller_id": caller_id},
            )
            raise InternalError("Database error", cause=exc) from exc

        logger.info("member_left", extra={"space_id": space_id, "user_id": caller_id})
        return MembershipResult(success=True, message=MSG_SPACE_LEFT)

    async def _commit_departure(self, space_id: str, user_id: str) -> None:
        batch = self._store.batch()
        batch.update(space_path(space_id), {member_field(user_id): DELETE_FIELD})
        batch.update(user_path(user_id), {FIELD_SPACE_IDS: ArrayRemove((space_id,))})
        await batch.commit()
