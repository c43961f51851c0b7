"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.logging import RichHandler

from cluster_teardown.utils.logging import setup_logging


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_level_from_name(self) -> None:
        """Test the root level follows the level name."""
        setup_logging(level="WARNING")

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(handler, RichHandler) for handler in root.handlers)

    def test_verbose_forces_debug(self) -> None:
        """Test verbose mode enables DEBUG and keeps the SDK quiet."""
        setup_logging(level="ERROR", verbose=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("botocore").level == logging.WARNING

    def test_log_file(self, tmp_path: Path) -> None:
        """Test an additional file handler."""
        log_file = tmp_path / "teardown.log"
        setup_logging(level="INFO", log_file=str(log_file))

        logging.getLogger("cluster_teardown.test").info("deleted vpc-1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "deleted vpc-1" in log_file.read_text()
