"""Unit tests for SpacesSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from medikeep.domain.spaces.settings import SpacesSettings, TriggerMode


@pytest.mark.unit
class TestSpacesSettings:
    def test_defaults(self) -> None:
        settings = SpacesSettings()
        assert settings.delete_batch_size == 100
        assert settings.trigger_mode is TriggerMode.QUEUE
        assert settings.trigger_secret is None

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPACES_DELETE_BATCH_SIZE", "250")
        monkeypatch.setenv("SPACES_TRIGGER_MODE", "inline")
        settings = SpacesSettings()
        assert settings.delete_batch_size == 250
        assert settings.trigger_mode is TriggerMode.INLINE

    def test_trigger_secret_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPACES_TRIGGER_SECRET", "s3cret")
        secret = SpacesSettings().trigger_secret
        assert secret is not None
        assert secret.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(secret)

    @pytest.mark.parametrize("size", [0, 501])
    def test_batch_size_bounds(self, size: int) -> None:
        with pytest.raises(ValidationError):
            SpacesSettings(delete_batch_size=size)
