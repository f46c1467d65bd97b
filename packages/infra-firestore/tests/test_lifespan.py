"""Unit tests for medikeep.infra.firestore.lifespan."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from medikeep.foundation.application import LifespanContribution
from medikeep.infra.firestore.lifespan import _firestore_lifespan, lifespan_contribution
from medikeep.infra.firestore.store import FirestoreDocumentStore


def _app() -> MagicMock:
    app = MagicMock()
    app.state = SimpleNamespace()
    return app


@pytest.mark.unit
class TestLifespanContribution:
    def test_is_lifespan_contribution(self) -> None:
        assert isinstance(lifespan_contribution, LifespanContribution)

    def test_priority_is_75(self) -> None:
        assert lifespan_contribution.priority == 75


@pytest.mark.unit
class TestFirestoreLifespan:
    @pytest.mark.asyncio
    @patch("medikeep.infra.firestore.lifespan.get_firestore_factory")
    async def test_startup_attaches_store(self, mock_get_factory: MagicMock) -> None:
        factory = MagicMock()
        mock_get_factory.return_value = factory
        app = _app()

        async with _firestore_lifespan(app):
            assert isinstance(app.state.document_store, FirestoreDocumentStore)
            factory.get_client.assert_called_once()

    @pytest.mark.asyncio
    @patch("medikeep.infra.firestore.lifespan.get_firestore_factory")
    async def test_shutdown_closes_factory(self, mock_get_factory: MagicMock) -> None:
        factory = MagicMock()
        mock_get_factory.return_value = factory
        app = _app()

        async with _firestore_lifespan(app):
            factory.close.assert_not_called()

        factory.close.assert_called_once()
        assert app.state.document_store is None

    @pytest.mark.asyncio
    @patch("medikeep.infra.firestore.lifespan.get_firestore_factory")
    async def test_shutdown_close_failure_is_logged(self, mock_get_factory: MagicMock) -> None:
        factory = MagicMock()
        factory.close.side_effect = ValueError("app already deleted")
        mock_get_factory.return_value = factory

        async with _firestore_lifespan(_app()):
            pass
