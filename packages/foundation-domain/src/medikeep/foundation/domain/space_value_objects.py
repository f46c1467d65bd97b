"""Value objects for Space membership.

Immutable domain primitives over a space's ``members`` map. The map is
stored denormalized on the Space document as ``{user_id: role}``; the
inverse lives on each UserProfile as ``spaceIds``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


class MemberRole(StrEnum):
    """Well-known member roles.

    Only OWNER carries authority. Any other string is a valid role and is
    stored verbatim; these constants are the common defaults.
    """

    OWNER = "owner"
    MEMBER = "member"


@dataclass(frozen=True, slots=True)
class SpaceMembers:
    """Read-only snapshot of a space's member map.

    Attributes:
        roles: Mapping of user id to role string.

    Example:
        >>> members = SpaceMembers.from_document({"members": {"u1": "owner"}})
        >>> members.is_owner("u1")
        True
        >>> members.removal_orphans_space("u1")
        True
    """

    roles: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))

    @classmethod
    def from_document(cls, data: Mapping[str, Any] | None) -> SpaceMembers:
        """Build from raw Space document data; missing map means no members."""
        raw = (data or {}).get("members") or {}
        return cls({str(uid): str(role) for uid, role in raw.items()})

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.roles

    def __iter__(self) -> Iterator[str]:
        return iter(self.roles)

    def __len__(self) -> int:
        return len(self.roles)

    def role_of(self, user_id: str) -> str | None:
        return self.roles.get(user_id)

    def is_owner(self, user_id: str) -> bool:
        return self.roles.get(user_id) == MemberRole.OWNER

    @property
    def owner_count(self) -> int:
        return sum(1 for role in self.roles.values() if role == MemberRole.OWNER)

    def removal_orphans_space(self, user_id: str) -> bool:
        """Whether removing ``user_id`` would leave the space with no owner.

        True only when the user is an owner and the sole one. A space whose
        sole owner is also its sole member still counts: the owner cannot
        remove themself, the space must be deleted instead.
        """
        return self.is_owner(user_id) and self.owner_count == 1
