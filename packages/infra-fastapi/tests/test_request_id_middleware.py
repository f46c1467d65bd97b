"""Unit tests for medikeep.infra.fastapi.middleware.request_id."""

from __future__ import annotations

import uuid

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from medikeep.foundation.domain.exceptions import FailedPreconditionError
from medikeep.infra.fastapi.error_handlers import register_exception_handlers
from medikeep.infra.fastapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    _is_valid_uuid,
    get_request_id,
    request_id_ctx,
)


@pytest.fixture()
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app)

    @app.post("/spaces/{space_id}/leave")
    async def leave(space_id: str) -> dict[str, object]:
        return {
            "request_id": get_request_id(),
            "bound": structlog.contextvars.get_contextvars().get("request_id"),
        }

    @app.delete("/spaces/{space_id}/members/{user_id}")
    async def remove(space_id: str, user_id: str) -> None:
        raise FailedPreconditionError("Cannot remove the last owner of the space")

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.unit
class TestIsValidUUID:
    @pytest.mark.parametrize("value", [str(uuid.uuid4()), str(uuid.uuid1())])
    def test_accepts_any_uuid_version(self, value: str) -> None:
        assert _is_valid_uuid(value) is True

    @pytest.mark.parametrize("value", [None, "", "not-a-uuid", "12345678-1234"])
    def test_rejects_non_uuids(self, value: str | None) -> None:
        assert _is_valid_uuid(value) is False


@pytest.mark.unit
class TestRequestIdMiddleware:
    def test_generates_id_when_header_missing(self, client: TestClient) -> None:
        resp = client.post("/spaces/s1/leave")

        response_id = resp.headers[REQUEST_ID_HEADER]
        assert _is_valid_uuid(response_id)
        assert resp.json()["request_id"] == response_id

    def test_keeps_caller_supplied_uuid(self, client: TestClient) -> None:
        supplied = str(uuid.uuid4())
        resp = client.post("/spaces/s1/leave", headers={REQUEST_ID_HEADER: supplied})

        assert resp.headers[REQUEST_ID_HEADER] == supplied
        assert resp.json()["request_id"] == supplied

    def test_replaces_malformed_id(self, client: TestClient) -> None:
        resp = client.post("/spaces/s1/leave", headers={REQUEST_ID_HEADER: "req-42"})

        response_id = resp.headers[REQUEST_ID_HEADER]
        assert response_id != "req-42"
        assert _is_valid_uuid(response_id)

    def test_binds_id_into_structlog_context(self, client: TestClient) -> None:
        supplied = str(uuid.uuid4())
        resp = client.post("/spaces/s1/leave", headers={REQUEST_ID_HEADER: supplied})

        assert resp.json()["bound"] == supplied
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_problem_responses_carry_id(self, client: TestClient) -> None:
        supplied = str(uuid.uuid4())
        resp = client.delete("/spaces/s1/members/u1", headers={REQUEST_ID_HEADER: supplied})

        assert resp.status_code == 412
        assert resp.headers[REQUEST_ID_HEADER] == supplied

    def test_context_cleared_after_request(self, client: TestClient) -> None:
        client.post("/spaces/s1/leave")
        assert request_id_ctx.get() == ""
        assert get_request_id() == ""
