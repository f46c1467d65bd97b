"""Tests for Principal value object."""

from __future__ import annotations

import dataclasses

import pytest

from medikeep.foundation.domain.principal import Principal


@pytest.mark.unit
class TestPrincipal:
    """Tests for Principal frozen dataclass."""

    def test_construction_minimal(self) -> None:
        p = Principal(uid="u1")
        assert p.uid == "u1"
        assert p.email is None
        assert p.email_verified is False

    def test_construction_full(self) -> None:
        p = Principal(uid="u1", email="u1@example.com", email_verified=True)
        assert p.email == "u1@example.com"
        assert p.email_verified is True

    def test_frozen(self) -> None:
        p = Principal(uid="u1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.uid = "u2"  # type: ignore[misc]

    def test_equality(self) -> None:
        assert Principal(uid="u1") == Principal(uid="u1")
