"""Shared fixtures for domain-spaces tests."""

from __future__ import annotations

import pytest

from medikeep.infra.firestore.memory import InMemoryDocumentStore


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture()
def owned_space(store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    """Space s1 owned by u1, plus registered users u1, u2 and u3."""
    store.seed("spaces/s1", {"name": "Home", "members": {"u1": "owner"}})
    store.seed("users/u1", {"email": "u1@x.com", "spaceIds": ["s1"]})
    store.seed("users/u2", {"email": "u2@x.com", "spaceIds": []})
    store.seed("users/u3", {"email": "u3@x.com", "spaceIds": []})
    return store


@pytest.fixture()
def shared_space(owned_space: InMemoryDocumentStore) -> InMemoryDocumentStore:
    """Space s1 with owner u1 and member u2."""
    owned_space.seed("spaces/s1", {"name": "Home", "members": {"u1": "owner", "u2": "member"}})
    owned_space.seed("users/u2", {"email": "u2@x.com", "spaceIds": ["s1"]})
    return owned_space
