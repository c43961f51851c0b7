"""Deletion outcome model.

Result of running one resource's deletion procedure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .record import ResourceRecord


class DeletionStatus(Enum):
    """Individual resource deletion status."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeletionOutcome:
    """Deletion outcome entity.

    Created when a resource is dispatched for deletion and finalized when its
    procedure returns or exhausts retries.

    Validation rules:
        - status=failed: requires message
        - status=skipped: requires message
        - attempts must be >= 0

    Attributes:
        record: Resource the outcome belongs to
        status: Deletion outcome (succeeded, failed, skipped)
        attempts: Number of primary delete calls made
        message: Human-readable detail (error, skip reason, or note)
        error_code: AWS error code of the last failure (optional)
        phase: Name of the phase the resource was scheduled in (optional)
        started_at: When the procedure was dispatched
        finished_at: When the outcome was finalized (optional)
    """

    record: ResourceRecord
    status: DeletionStatus
    attempts: int = 0
    message: str = ""
    error_code: Optional[str] = None
    phase: Optional[str] = None
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> bool:
        return self.status == DeletionStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == DeletionStatus.FAILED

    def finalize(self) -> DeletionOutcome:
        """Stamp the finish time and return self."""
        if self.finished_at is None:
            self.finished_at = _utcnow()
        return self

    def validate(self) -> bool:
        """Validate outcome invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status in (DeletionStatus.FAILED, DeletionStatus.SKIPPED) and not self.message:
            raise ValueError(f"{self.status.value} outcome requires a message")

        if self.attempts < 0:
            raise ValueError("Attempts cannot be negative")

        if self.finished_at and self.finished_at < self.started_at:
            raise ValueError("Finish time before start time")

        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.record.type_name,
            "id": self.record.resource_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "message": self.message,
            "error_code": self.error_code,
            "phase": self.phase,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
