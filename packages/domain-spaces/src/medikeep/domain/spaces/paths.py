"""Collection names, field names and path builders for the spaces tree.

The store has no schema; these constants are the single source of truth
for where Space, StorageBox, Medication and UserProfile documents live and
which fields link them.
"""

from __future__ import annotations

SPACES = "spaces"
USERS = "users"
STORAGE_BOXES = "storage_boxes"
MEDICATIONS = "medications"

# Space.members: {user_id: role}
FIELD_MEMBERS = "members"
# UserProfile.spaceIds: [space_id, ...]
FIELD_SPACE_IDS = "spaceIds"
# UserProfile.email
FIELD_EMAIL = "email"
# Medication.storageBoxId
FIELD_STORAGE_BOX_ID = "storageBoxId"


def space_path(space_id: str) -> str:
    return f"{SPACES}/{space_id}"


def storage_boxes_path(space_id: str) -> str:
    return f"{SPACES}/{space_id}/{STORAGE_BOXES}"


def storage_box_path(space_id: str, storage_box_id: str) -> str:
    return f"{storage_boxes_path(space_id)}/{storage_box_id}"


def medications_path(space_id: str) -> str:
    return f"{SPACES}/{space_id}/{MEDICATIONS}"


def user_path(user_id: str) -> str:
    return f"{USERS}/{user_id}"


def member_field(user_id: str) -> str:
    """Dotted field path addressing one entry of ``Space.members``."""
    return f"{FIELD_MEMBERS}.{user_id}"
