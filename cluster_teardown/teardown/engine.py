"""Teardown engine.

Main orchestrator for manifest execution with preview and execution modes.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from ..models.manifest import DeletionManifest
from ..models.outcome import DeletionOutcome, DeletionStatus
from ..models.record import ResourceRecord
from ..models.resource_type import ResourceType
from ..models.run import RunMode, RunStatus, TeardownRun
from .audit import AuditStorage
from .deleter import ALREADY_ABSENT, ResourceDeleter
from .retry import Sleeper, WaitPolicy, poll_until
from .scheduler import UNSCHEDULED, PhaseScheduler, ScheduledPhase
from .sweeper import OrphanSweeper

logger = logging.getLogger(__name__)

DEFAULT_DRAIN_SECONDS = 60
# Barrier probe bound for procedures without a wait policy of their own
BARRIER_WAIT = WaitPolicy(interval_seconds=10, max_polls=30)


class TeardownEngine:
    """Teardown orchestrator.

    Runs a manifest phase by phase through the resource deleter, holding a
    barrier between phases, sweeping orphaned interfaces before the security
    group step, and writing an audit log of the run.

    Attributes:
        deleter: Resource deleter (owns the procedure registry)
        scheduler: Phase scheduler
        sweeper: Orphaned interface sweeper (optional)
        audit_storage: Audit log storage (optional)
        drain_seconds: Fixed wait after the barrier probes
    """

    def __init__(
        self,
        deleter: ResourceDeleter,
        scheduler: Optional[PhaseScheduler] = None,
        sweeper: Optional[OrphanSweeper] = None,
        audit_storage: Optional[AuditStorage] = None,
        drain_seconds: float = DEFAULT_DRAIN_SECONDS,
        sleep: Optional[Sleeper] = None,
        aws_profile: Optional[str] = None,
    ) -> None:
        self.deleter = deleter
        self.scheduler = scheduler or PhaseScheduler()
        self.sweeper = sweeper
        self.audit_storage = audit_storage
        self.drain_seconds = drain_seconds
        self.sleep = sleep or time.sleep
        self.aws_profile = aws_profile

    def _new_run(self, manifest: DeletionManifest, mode: RunMode, status: RunStatus) -> TeardownRun:
        return TeardownRun(
            run_id=f"run_{uuid.uuid4()}",
            manifest_source=manifest.source,
            region=manifest.region,
            timestamp=datetime.now(timezone.utc),
            mode=mode,
            status=status,
            total_resources=len(manifest.entries),
            aws_profile=self.aws_profile,
        )

    def preview(self, manifest: DeletionManifest) -> TeardownRun:
        """Plan a manifest without deleting anything (dry-run mode).

        Args:
            manifest: Manifest to plan

        Returns:
            TeardownRun in planned status; skipped_count holds unsupported resources
        """
        run = self._new_run(manifest, RunMode.DRY_RUN, RunStatus.PLANNED)
        run.skipped_count = sum(1 for r in manifest.resources if self.deleter.registry.get(r.type_name) is None)

        for scheduled in self.scheduler.schedule(manifest):
            if not scheduled.is_empty:
                logger.info(f"Would run phase {scheduled.phase.name}: {len(scheduled.records)} resource(s)")

        self._audit(run)
        return run

    def execute(self, manifest: DeletionManifest) -> TeardownRun:
        """Delete every resource of a manifest (execution mode).

        Resource-level failures never raise; they are recorded as Failed
        outcomes and the run continues with the next resource.

        Args:
            manifest: Reviewed manifest to execute

        Returns:
            TeardownRun with outcomes and final status
        """
        run = self._new_run(manifest, RunMode.EXECUTE, RunStatus.EXECUTING)
        run.started_at = datetime.now(timezone.utc)
        logger.info(f"Starting teardown run {run.run_id}: {run.total_resources} resource(s) in {run.region}")

        schedule = self.scheduler.schedule(manifest)
        previous: List[DeletionOutcome] = []

        for scheduled in schedule:
            if previous and scheduled.phase is not UNSCHEDULED and not scheduled.is_empty:
                self._barrier(previous)

            logger.info(f"Phase {scheduled.phase.name}: {len(scheduled.records)} resource(s)")
            outcomes = self._run_phase(scheduled, manifest, run)
            run.outcomes.extend(outcomes)
            if outcomes:
                previous = outcomes

        run.completed_at = datetime.now(timezone.utc)
        self._finish(run)
        self._audit(run)
        return run

    def _audit(self, run: TeardownRun) -> None:
        if self.audit_storage is None:
            return
        try:
            audit_file = self.audit_storage.log_run(run)
            logger.info(f"Audit log written to {audit_file}")
        except OSError as e:
            logger.error(f"Could not write audit log for {run.run_id}: {e}")

    def _run_phase(
        self, scheduled: ScheduledPhase, manifest: DeletionManifest, run: TeardownRun
    ) -> List[DeletionOutcome]:
        outcomes = []
        for type_name, records in scheduled.groups:
            if type_name == ResourceType.SECURITY_GROUP.value and self.sweeper is not None:
                run.orphans_removed += self._sweep(manifest)

            for record in records:
                outcome = self._dispatch(record)
                outcome.phase = scheduled.phase.name
                outcomes.append(outcome)
        return outcomes

    def _dispatch(self, record: ResourceRecord) -> DeletionOutcome:
        try:
            outcome = self.deleter.delete(record)
            outcome.validate()
            return outcome
        except Exception as e:
            logger.exception(f"Unexpected error deleting {record}")
            return DeletionOutcome(
                record=record,
                status=DeletionStatus.FAILED,
                message=f"unexpected error: {e}",
            ).finalize()

    def _sweep(self, manifest: DeletionManifest) -> int:
        removed = 0
        for vpc_id in self.sweeper.target_vpcs(manifest):
            removed += self.sweeper.sweep(vpc_id)
        return removed

    def _barrier(self, outcomes: List[DeletionOutcome]) -> None:
        """Wait until the previous phase's deleted resources reach terminal state."""
        logger.info("Waiting for the previous phase to drain")

        for outcome in outcomes:
            if not outcome.succeeded or outcome.message == ALREADY_ABSENT:
                continue
            procedure = self.deleter.registry.get(outcome.record.type_name)
            if procedure is None or not procedure.has_probe:
                continue

            record = outcome.record
            poll_until(
                lambda: procedure.is_deleted(record),
                procedure.wait_policy or BARRIER_WAIT,
                f"{record} to reach terminal state",
                sleep=self.sleep,
            )

        if self.drain_seconds > 0:
            logger.info(f"Draining for {self.drain_seconds:g}s before the next phase")
            self.sleep(self.drain_seconds)

    @staticmethod
    def _finish(run: TeardownRun) -> None:
        run.succeeded_count = sum(1 for o in run.outcomes if o.status == DeletionStatus.SUCCEEDED)
        run.failed_count = sum(1 for o in run.outcomes if o.status == DeletionStatus.FAILED)
        run.skipped_count = sum(1 for o in run.outcomes if o.status == DeletionStatus.SKIPPED)

        attempted = run.succeeded_count + run.failed_count
        if run.failed_count == 0:
            run.status = RunStatus.COMPLETED
        elif run.failed_count == attempted:
            run.status = RunStatus.FAILED
        else:
            run.status = RunStatus.PARTIAL
        run.validate()

        logger.info(
            f"Run {run.run_id} {run.status.value}: {run.succeeded_count} succeeded, "
            f"{run.failed_count} failed, {run.skipped_count} skipped"
        )
