"""Tests for AuditStorage."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from cluster_teardown.models.outcome import DeletionOutcome, DeletionStatus
from cluster_teardown.models.run import RunMode, RunStatus, TeardownRun
from cluster_teardown.teardown.audit import AuditStorage
from tests.fixtures.inventories import make_record


def make_run(run_id: str, timestamp: datetime) -> TeardownRun:
    run = TeardownRun(
        run_id=run_id,
        manifest_source="inventory.json",
        region="us-east-1",
        timestamp=timestamp,
        mode=RunMode.EXECUTE,
        status=RunStatus.COMPLETED,
        total_resources=1,
        succeeded_count=1,
        orphans_removed=2,
    )
    run.outcomes.append(
        DeletionOutcome(record=make_record("vpcs", "vpc-1"), status=DeletionStatus.SUCCEEDED, attempts=1).finalize()
    )
    return run


class TestAuditStorage:
    """Test suite for AuditStorage."""

    def test_log_run_layout(self, tmp_path: Path) -> None:
        """Test logs are stored under year/month."""
        storage = AuditStorage(storage_dir=tmp_path / "audit")

        path = storage.log_run(make_run("run_1", datetime(2025, 11, 3, 12, 0, tzinfo=timezone.utc)))

        assert path == tmp_path / "audit" / "2025" / "11" / "teardown-run_1.yaml"
        assert path.exists()

    def test_get_run(self, tmp_path: Path) -> None:
        """Test retrieval by run id."""
        storage = AuditStorage(storage_dir=tmp_path)
        storage.log_run(make_run("run_1", datetime(2025, 11, 3, tzinfo=timezone.utc)))

        data = storage.get_run("run_1")

        assert data["run"]["run_id"] == "run_1"
        assert data["run"]["orphans_removed"] == 2
        assert data["outcomes"][0]["id"] == "vpc-1"
        assert data["outcomes"][0]["status"] == "succeeded"
        assert storage.get_run("run_missing") is None

    def test_query_runs_by_date(self, tmp_path: Path) -> None:
        """Test date range filtering, naive bounds taken as UTC."""
        storage = AuditStorage(storage_dir=tmp_path)
        storage.log_run(make_run("run_oct", datetime(2025, 10, 20, tzinfo=timezone.utc)))
        storage.log_run(make_run("run_nov", datetime(2025, 11, 3, tzinfo=timezone.utc)))

        assert [d["run"]["run_id"] for d in storage.query_runs()] == ["run_oct", "run_nov"]
        assert [d["run"]["run_id"] for d in storage.query_runs(since=datetime(2025, 11, 1))] == ["run_nov"]
        assert [d["run"]["run_id"] for d in storage.query_runs(until=datetime(2025, 10, 31))] == ["run_oct"]
