"""Tests for auth lifespan hook."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from medikeep.infra.auth.firebase import FirebaseTokenVerifier
from medikeep.infra.auth.lifespan import _auth_lifespan, lifespan_contribution
from medikeep.infra.auth.settings import AuthSettings


@pytest.mark.unit
class TestAuthLifespan:
    @pytest.mark.asyncio(loop_scope="function")
    async def test_places_verifier_on_state(self) -> None:
        app = MagicMock()
        factory = MagicMock()
        settings = AuthSettings(_env_file=None, check_revoked=True)  # type: ignore[call-arg]

        with (
            patch("medikeep.infra.auth.lifespan.get_auth_settings", return_value=settings),
            patch("medikeep.infra.auth.lifespan.get_firestore_factory", return_value=factory),
        ):
            async with _auth_lifespan(app):
                verifier = app.state.token_verifier
                assert isinstance(verifier, FirebaseTokenVerifier)
                assert verifier._app is factory.get_app.return_value
                assert verifier._check_revoked is True

        assert app.state.token_verifier is None

    def test_contribution_priority(self) -> None:
        assert lifespan_contribution.priority == 100
