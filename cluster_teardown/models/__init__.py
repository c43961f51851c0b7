"""Data model for the teardown engine.

Classes:
    ResourceType: Closed enumeration of deletable resource types
    ResourceRecord: One raw inventory record
    EnrichedRecord: A record plus its best-effort description
    SelectionDecision: The selector's yes/no verdict for one record
    DeletionManifest: Reviewable list of records chosen for deletion
    DeletionOutcome: Result of one deletion procedure
    TeardownRun: Run-level summary of an execution
"""

from __future__ import annotations

__all__ = [
    "ResourceType",
    "ResourceRecord",
    "EnrichedRecord",
    "SelectionDecision",
    "DeletionManifest",
    "ManifestError",
    "DeletionOutcome",
    "DeletionStatus",
    "TeardownRun",
    "RunMode",
    "RunStatus",
]

from .manifest import DeletionManifest, ManifestError
from .outcome import DeletionOutcome, DeletionStatus
from .record import EnrichedRecord, ResourceRecord, SelectionDecision
from .resource_type import ResourceType
from .run import RunMode, RunStatus, TeardownRun
