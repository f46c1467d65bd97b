"""MediKeep Infra Firestore -- Firebase client, document store adapters."""

from medikeep.infra.firestore.client import FirestoreClientFactory, get_firestore_factory
from medikeep.infra.firestore.lifespan import lifespan_contribution
from medikeep.infra.firestore.memory import InMemoryDocumentStore, InMemoryWriteBatch
from medikeep.infra.firestore.settings import FirebaseSettings, get_firebase_settings
from medikeep.infra.firestore.store import (
    FIRESTORE_MAX_BATCH_SIZE,
    FirestoreDocumentStore,
    FirestoreWriteBatch,
)

__all__ = [
    "FIRESTORE_MAX_BATCH_SIZE",
    "FirebaseSettings",
    "FirestoreClientFactory",
    "FirestoreDocumentStore",
    "FirestoreWriteBatch",
    "InMemoryDocumentStore",
    "InMemoryWriteBatch",
    "get_firebase_settings",
    "get_firestore_factory",
    "lifespan_contribution",
]
