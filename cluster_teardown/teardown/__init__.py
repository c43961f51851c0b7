"""Manifest execution: phase scheduling, per-type deletion and reporting.

Classes:
    TeardownEngine: Runs a manifest phase by phase and records an audit log
    PhaseScheduler: Groups manifest resources into the fixed deletion phases
    ResourceDeleter: Runs one resource's deletion procedure with retries
    ProcedureRegistry: Discovers the per-type deletion procedures
    OrphanSweeper: Removes unattached network interfaces before security groups
    TeardownReporter: Summarizes and renders deletion outcomes
    AuditStorage: YAML audit logs of executed runs
"""

from __future__ import annotations

__all__ = [
    "TeardownEngine",
    "PhaseScheduler",
    "Phase",
    "ScheduledPhase",
    "TypeDependencyGraph",
    "ResourceDeleter",
    "ProcedureRegistry",
    "OrphanSweeper",
    "TeardownReporter",
    "AuditStorage",
    "RetryPolicy",
    "WaitPolicy",
    "poll_until",
]

from .audit import AuditStorage
from .deleter import ResourceDeleter
from .dependency import TypeDependencyGraph
from .engine import TeardownEngine
from .registry import ProcedureRegistry
from .reporter import TeardownReporter
from .retry import RetryPolicy, WaitPolicy, poll_until
from .scheduler import Phase, PhaseScheduler, ScheduledPhase
from .sweeper import OrphanSweeper
