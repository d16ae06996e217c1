"""Unit tests for logging setup."""

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from gista.utils import logging as gista_logging
from gista.utils.logging import resolve_level, setup_logging


class TestResolveLevel:
    """Tests for level name resolution."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("INFO", logging.INFO), ("debug", logging.DEBUG), (" Warning ", logging.WARNING)],
    )
    def test_known_levels(self, name: str, expected: int) -> None:
        """Standard names should resolve regardless of case."""
        assert resolve_level(name) == expected

    def test_unknown_level(self) -> None:
        """Unknown names should be rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            resolve_level("chatty")


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture
    def configure(self, monkeypatch: pytest.MonkeyPatch) -> MagicMock:
        """Capture structlog configuration without changing global state."""
        configure = MagicMock()
        monkeypatch.setattr(gista_logging.structlog, "configure", configure)
        monkeypatch.setattr(gista_logging.logging, "basicConfig", MagicMock())
        yield configure
        structlog.contextvars.clear_contextvars()

    def test_binds_process_role(self, configure: MagicMock) -> None:
        """Every event should carry the process role."""
        setup_logging("DEBUG", process="share")

        assert structlog.contextvars.get_contextvars() == {"process": "share"}
        configure.assert_called_once()
        assert configure.call_args.kwargs["context_class"] is dict

    def test_rejects_unknown_role(self, configure: MagicMock) -> None:
        """Only the known process roles should be accepted."""
        with pytest.raises(ValueError, match="Unknown process role"):
            setup_logging("INFO", process="worker")
        configure.assert_not_called()

    def test_rejects_unknown_level(self, configure: MagicMock) -> None:
        """A bad level should fail before anything is configured."""
        with pytest.raises(ValueError):
            setup_logging("loud")
        configure.assert_not_called()
