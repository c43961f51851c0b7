"""Teardown run model.

Run-level summary of executing one deletion manifest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .outcome import DeletionOutcome


class RunMode(Enum):
    """Run execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class RunStatus(Enum):
    """Run status with state transitions."""

    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class TeardownRun:
    """Teardown run entity.

    State transitions:
        planned → executing → completed (every resource succeeded or skipped)
        planned → executing → partial (some failed)
        planned → executing → failed (every attempted resource failed)

    Attributes:
        run_id: Unique identifier for the run
        manifest_source: Inventory file the manifest was selected from
        region: AWS region
        timestamp: When the run was initiated (UTC)
        mode: dry-run or execute
        status: Current status
        total_resources: Resources in the manifest
        succeeded_count: Number deleted or confirmed absent
        failed_count: Number that exhausted retries or hit a fatal error
        skipped_count: Number skipped (unsupported or not deletable on its own)
        orphans_removed: Unlisted network interfaces removed by the sweeper
        aws_profile: AWS profile used for credentials (optional)
        started_at: When execution started (optional)
        completed_at: When execution completed (optional)
        outcomes: Per-resource outcomes in dispatch order
    """

    run_id: str
    manifest_source: str
    region: str
    timestamp: datetime
    mode: RunMode
    status: RunStatus
    total_resources: int
    succeeded_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    orphans_removed: int = 0
    aws_profile: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = field(default=None)
    outcomes: List[DeletionOutcome] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def validate(self) -> bool:
        """Validate run invariants.

        Validation rules:
            - executed runs: succeeded + failed + skipped == total_resources
            - completed_at must be after started_at
            - dry-run mode must have planned status

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.mode == RunMode.EXECUTE and self.status != RunStatus.EXECUTING:
            if self.succeeded_count + self.failed_count + self.skipped_count != self.total_resources:
                raise ValueError("Resource counts don't match total")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        if self.mode == RunMode.DRY_RUN and self.status != RunStatus.PLANNED:
            raise ValueError("Dry-run mode must have planned status")

        return True
