"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from medikeep.foundation.domain.ports.document_store import (
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

__all__ = [
    "DELETE_FIELD",
    "ArrayRemove",
    "ArrayUnion",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "FilterOp",
    "StoreError",
    "WriteBatch",
]
