"""Shared fixtures for integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from fastapi.testclient import TestClient

from medikeep.domain.spaces.settings import get_spaces_settings
from medikeep.foundation.domain.exceptions import AuthenticationError
from medikeep.infra.auth.settings import get_auth_settings
from medikeep.infra.fastapi import AppSettings, create_app
from medikeep.infra.firestore.memory import InMemoryDocumentStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from fastapi import FastAPI

# Entry-point names excluded in integration tests (no external services).
TEST_EXCLUDE_NAMES = frozenset(
    {
        "observability",
        "firestore",
        "auth",
        "taskiq",
    }
)

TRIGGER_SECRET = "trigger-test-secret"


class UidTokenVerifier:
    """Accepts any token and treats it as the caller's uid.

    The token ``expired`` is rejected the way Firebase rejects an expired
    ID token.
    """

    async def verify(self, token: str) -> dict[str, Any]:
        if token == "expired":
            raise AuthenticationError("Token has expired", auth_error="token_expired")
        return {"uid": token, "email": f"{token}@x.com", "email_verified": True}


def _bearer(uid: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {uid}"}


@pytest.fixture()
def bearer() -> Callable[[str], dict[str, str]]:
    """Build the Authorization header for a caller uid."""
    return _bearer


@pytest.fixture()
def trigger_headers() -> dict[str, str]:
    """Headers the deletion event source sends."""
    return {"X-Trigger-Secret": TRIGGER_SECRET}


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    """Space s1 owned by u1, plus registered users u1, u2 and u3."""
    store = InMemoryDocumentStore()
    store.seed("spaces/s1", {"name": "Home", "members": {"u1": "owner"}})
    store.seed("users/u1", {"email": "u1@x.com", "spaceIds": ["s1"]})
    store.seed("users/u2", {"email": "u2@x.com", "spaceIds": []})
    store.seed("users/u3", {"email": "u3@x.com", "spaceIds": []})
    return store


@pytest.fixture()
def app(store: InMemoryDocumentStore, monkeypatch: pytest.MonkeyPatch) -> Iterator[FastAPI]:
    """App assembled from installed entry points, cascades run inline."""
    monkeypatch.setenv("SPACES_TRIGGER_MODE", "inline")
    monkeypatch.setenv("SPACES_TRIGGER_SECRET", TRIGGER_SECRET)
    monkeypatch.delenv("AUTH_DEV_BYPASS", raising=False)
    get_spaces_settings.cache_clear()
    get_auth_settings.cache_clear()

    app = create_app(
        settings=AppSettings(title="MediKeep Test", version="0.1.0"),
        exclude_names=TEST_EXCLUDE_NAMES,
    )
    app.state.document_store = store
    app.state.token_verifier = UidTokenVerifier()
    yield app

    get_spaces_settings.cache_clear()
    get_auth_settings.cache_clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient for the app (lifespan hooks executed)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
