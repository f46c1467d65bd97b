"""MediKeep Foundation Domain -- pure Python domain primitives.

This package provides the foundational domain building blocks shared by
every MediKeep package: classified exceptions, the caller principal,
membership value objects, and the document store port.
"""

from medikeep.foundation.domain.exceptions import (
    AlreadyExistsError,
    AuthenticationError,
    DomainError,
    ErrorKind,
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
    DocumentSnapshot,
    DocumentStore,
    FieldFilter,
    FilterOp,
    StoreError,
    WriteBatch,
)
from medikeep.foundation.domain.principal import Principal
from medikeep.foundation.domain.space_value_objects import MemberRole, SpaceMembers

__all__ = [
    "DELETE_FIELD",
    "AlreadyExistsError",
    "ArrayRemove",
    "ArrayUnion",
    "AuthenticationError",
    "DocumentSnapshot",
    "DocumentStore",
    "DomainError",
    "ErrorKind",
    "FailedPreconditionError",
    "FieldFilter",
    "FilterOp",
    "InternalError",
    "InvalidArgumentError",
    "MemberRole",
    "NotFoundError",
    "PermissionDeniedError",
    "Principal",
    "SpaceMembers",
    "StoreError",
    "WriteBatch",
]
