"""Audit storage for teardown runs.

Stores and retrieves audit logs in YAML format for compliance and troubleshooting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml

from ..models.run import TeardownRun

DEFAULT_AUDIT_DIR = Path.home() / ".cluster-teardown" / "audit-logs"


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class AuditStorage:
    """Audit log storage and retrieval.

    Stores teardown run audit logs as YAML files organized by year/month.
    Supports querying runs by date range and retrieving a run log by id.

    Storage structure:
        ~/.cluster-teardown/audit-logs/
            2025/
                11/
                    teardown-run_123.yaml
                    teardown-run_456.yaml

    Attributes:
        storage_dir: Base directory for audit logs
    """

    def __init__(self, storage_dir: Optional[str | Path] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit logs (default: ~/.cluster-teardown/audit-logs)
        """
        self.storage_dir = Path(storage_dir) if storage_dir else DEFAULT_AUDIT_DIR
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_run(self, run: TeardownRun) -> Path:
        """Write a run and its outcomes to audit storage.

        Overwrites an existing log with the same run id.

        Args:
            run: Teardown run to log

        Returns:
            Path of the written audit file
        """
        year_month_dir = self.storage_dir / str(run.timestamp.year) / f"{run.timestamp.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data = {
            "metadata": {
                "version": "1.0",
                "log_type": "cluster_teardown",
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
            "run": {
                "run_id": run.run_id,
                "manifest_source": run.manifest_source,
                "region": run.region,
                "timestamp": run.timestamp.isoformat(),
                "aws_profile": run.aws_profile,
                "mode": run.mode.value,
                "status": run.status.value,
                "total_resources": run.total_resources,
                "succeeded_count": run.succeeded_count,
                "failed_count": run.failed_count,
                "skipped_count": run.skipped_count,
                "orphans_removed": run.orphans_removed,
                "started_at": _iso(run.started_at),
                "completed_at": _iso(run.completed_at),
                "duration_seconds": run.duration_seconds,
            },
            "outcomes": [outcome.to_dict() for outcome in run.outcomes],
        }

        audit_file = year_month_dir / f"teardown-{run.run_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)
        return audit_file

    def get_run(self, run_id: str) -> Optional[dict]:
        """Retrieve a run audit log by id.

        Args:
            run_id: Run ID to retrieve

        Returns:
            Audit log dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/teardown-{run_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)
        return None

    def query_runs(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> List[dict]:
        """Query runs within a date range.

        Naive datetimes are taken as UTC.

        Args:
            since: Start date (inclusive), None for all
            until: End date (inclusive), None for all

        Returns:
            Run audit logs matching the range, oldest first
        """
        results = []

        for year_dir in sorted(self.storage_dir.glob("*")):
            if not year_dir.is_dir():
                continue

            for month_dir in sorted(year_dir.glob("*")):
                if not month_dir.is_dir():
                    continue

                for audit_file in sorted(month_dir.glob("teardown-*.yaml")):
                    with open(audit_file, "r") as f:
                        audit_data = yaml.safe_load(f)

                    timestamp = _as_utc(datetime.fromisoformat(audit_data["run"]["timestamp"]))

                    if since and timestamp < _as_utc(since):
                        continue
                    if until and timestamp > _as_utc(until):
                        continue

                    results.append(audit_data)

        return sorted(results, key=lambda data: data["run"]["timestamp"])
