"""Logging setup."""

from __future__ import annotations

import logging
from typing import Optional

from rich.logging import RichHandler

QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def setup_logging(level: str = "INFO", verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure root logging with a Rich console handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        verbose: Force DEBUG and show source paths in console output
        log_file: Also write plain-text logs to this file (optional)
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [
        RichHandler(
            level=log_level,
            show_path=verbose,
            rich_tracebacks=True,
            markup=False,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    # SDK internals are noisy at DEBUG
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
