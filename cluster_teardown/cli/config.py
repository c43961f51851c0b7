"""Configuration loading for the CLI.

Precedence (lowest to highest): built-in defaults, the YAML config file,
environment variables, command-line options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".cluster-teardown" / "config.yaml"
CONFIG_PATH_ENV = "CLUSTER_TEARDOWN_CONFIG"


@dataclass
class Config:
    """CLI configuration.

    Attributes:
        aws_profile: AWS profile used for credentials (optional)
        log_level: Logging level name when neither --verbose nor --quiet is given
        drain_seconds: Fixed wait between the deletion phases
        audit_dir: Audit log directory (default: ~/.cluster-teardown/audit-logs)
        manifest_dir: Directory for manifests written without --output
        log_file: Also write plain-text logs to this file (optional)
    """

    aws_profile: Optional[str] = None
    log_level: str = "INFO"
    drain_seconds: float = 60
    audit_dir: Optional[str] = None
    manifest_dir: Optional[str] = None
    log_file: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str | Path] = None) -> Config:
        """Load configuration from file and environment.

        A missing config file is not an error. An unreadable or invalid one is
        logged and ignored.

        Args:
            path: Config file path (default: $CLUSTER_TEARDOWN_CONFIG or ~/.cluster-teardown/config.yaml)

        Returns:
            Loaded configuration
        """
        config_path = Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
        config = cls()

        if config_path.exists():
            config._apply(cls._read_file(config_path))

        config._apply(
            {
                "aws_profile": os.environ.get("AWS_PROFILE"),
                "log_level": os.environ.get("CLUSTER_TEARDOWN_LOG_LEVEL"),
                "drain_seconds": os.environ.get("CLUSTER_TEARDOWN_DRAIN_SECONDS"),
                "audit_dir": os.environ.get("CLUSTER_TEARDOWN_AUDIT_DIR"),
                "log_file": os.environ.get("CLUSTER_TEARDOWN_LOG_FILE"),
            }
        )
        return config

    @staticmethod
    def _read_file(config_path: Path) -> Dict[str, Any]:
        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring config file {config_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {config_path}: expected a mapping")
            return {}
        return data

    def _apply(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if value is None or value == "":
                continue
            if not hasattr(self, key):
                logger.debug(f"Unknown config key '{key}'")
                continue

            if key == "drain_seconds":
                try:
                    value = float(value)
                except (TypeError, ValueError):
                    logger.warning(f"Invalid drain_seconds '{value}', keeping {self.drain_seconds:g}")
                    continue
                if value < 0:
                    logger.warning(f"Negative drain_seconds '{value:g}', keeping {self.drain_seconds:g}")
                    continue
            elif key == "log_level":
                value = str(value).upper()

            setattr(self, key, value)
