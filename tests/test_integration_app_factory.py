"""Integration tests: app assembled from entry points, health and middleware."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import pytest

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

    from medikeep.infra.firestore.memory import InMemoryDocumentStore


@pytest.mark.integration
class TestDiscoveredRoutes:
    def test_membership_and_trigger_routes_mounted(self, client: TestClient) -> None:
        paths = {route.path for route in client.app.routes}  # type: ignore[attr-defined]
        assert "/spaces/{space_id}/members" in paths
        assert "/spaces/{space_id}/members/{user_id}" in paths
        assert "/spaces/{space_id}/leave" in paths
        assert "/triggers/document-deleted" in paths
        assert "/healthz" in paths


@pytest.mark.integration
class TestHealth:
    def test_healthy_with_store(self, client: TestClient) -> None:
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_health_skips_auth(self, client: TestClient) -> None:
        resp = client.get("/healthz", headers={"Authorization": "Bearer expired"})
        assert resp.status_code == 200

    def test_degraded_without_store(
        self,
        client: TestClient,
        store: InMemoryDocumentStore,
    ) -> None:
        client.app.state.document_store = None  # type: ignore[attr-defined]
        resp = client.get("/healthz")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"


@pytest.mark.integration
class TestRequestIdPropagation:
    def test_generates_request_id(self, client: TestClient) -> None:
        resp = client.get("/healthz")
        UUID(resp.headers["X-Request-ID"])

    def test_propagates_provided_request_id(self, client: TestClient) -> None:
        provided = "12345678-1234-5678-1234-567812345678"
        resp = client.get("/healthz", headers={"X-Request-ID": provided})
        assert resp.headers["X-Request-ID"] == provided

    def test_request_id_on_error_responses(self, client: TestClient) -> None:
        resp = client.post("/spaces/s1/leave")
        assert resp.status_code == 400
        UUID(resp.headers["X-Request-ID"])


@pytest.mark.integration
class TestStoreNotConfigured:
    def test_membership_without_store_is_internal(self, client: TestClient) -> None:
        client.app.state.document_store = None  # type: ignore[attr-defined]
        resp = client.post("/spaces/s1/leave", headers={"Authorization": "Bearer u1"})
        assert resp.status_code == 500
        assert resp.json()["error_code"] == "internal"
