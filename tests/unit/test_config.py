"""Unit tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from gista.config import APP_GROUP_ID, DEFAULT_API_BASE_URL, Settings, get_settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without environment overrides the documented defaults apply."""
        for name in ("GISTA_API_BASE_URL", "GISTA_API_TOKEN", "GISTA_MAX_RETRY_ATTEMPTS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert settings.api_token is None
        assert settings.request_timeout == 30.0
        assert settings.max_retry_attempts == 2
        assert settings.retry_delay == 1.0
        assert settings.app_group_dir.name == APP_GROUP_ID

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """GISTA_ prefixed variables should override defaults."""
        monkeypatch.setenv("GISTA_API_BASE_URL", "http://localhost:8080/api/")
        monkeypatch.setenv("GISTA_API_TOKEN", "tok")
        monkeypatch.setenv("GISTA_MAX_RETRY_ATTEMPTS", "0")
        monkeypatch.setenv("GISTA_APP_GROUP_DIR", str(tmp_path))

        settings = Settings()

        assert settings.api_base_url == "http://localhost:8080/api"
        assert settings.api_token == "tok"
        assert settings.max_retry_attempts == 0
        assert settings.app_group_dir == tmp_path

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("api_base_url", "ftp://example.com"),
            ("request_timeout", 0),
            ("max_retry_attempts", -1),
            ("retry_delay", -0.5),
            ("log_level", "verbose"),
        ],
    )
    def test_invalid_values(self, field: str, value: object) -> None:
        """Out-of-range values should be rejected."""
        with pytest.raises(ValidationError):
            Settings(**{field: value})

    def test_log_level_normalized(self) -> None:
        """Level names should be accepted in any case."""
        assert Settings(log_level=" debug ").log_level == "DEBUG"

    def test_get_settings_cached(self) -> None:
        """get_settings should return the same instance until cleared."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
