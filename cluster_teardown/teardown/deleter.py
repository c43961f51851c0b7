"""Resource deletion.

Runs one resource's deletion procedure: pre-steps, the primary delete call under
the type's fixed-delay retry policy, and the optional wait for terminal state.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..aws.errors import error_code, error_message, is_not_found, is_permission_error
from ..models.outcome import DeletionOutcome, DeletionStatus
from ..models.record import ResourceRecord
from .procedures.base import DeletionProcedure
from .registry import ProcedureRegistry
from .retry import Sleeper, poll_until

logger = logging.getLogger(__name__)

NOT_SUPPORTED = "not supported"
ALREADY_ABSENT = "already absent"


class ResourceDeleter:
    """AWS resource deletion orchestrator.

    Dispatches each record to the procedure registered for its type. Never
    raises for AWS errors: every result is returned as a DeletionOutcome.

    Attributes:
        registry: Procedure registry
        sleep: Sleep function used between attempts (default: time.sleep)
    """

    def __init__(self, registry: ProcedureRegistry, sleep: Optional[Sleeper] = None) -> None:
        self.registry = registry
        self.sleep = sleep

    def delete(self, record: ResourceRecord) -> DeletionOutcome:
        """Delete one resource.

        Args:
            record: Resource to delete

        Returns:
            Finalized DeletionOutcome
        """
        procedure = self.registry.get(record.type_name)
        if procedure is None:
            logger.warning(f"Skipping {record}: {NOT_SUPPORTED}")
            return DeletionOutcome(record=record, status=DeletionStatus.SKIPPED, message=NOT_SUPPORTED).finalize()

        outcome = DeletionOutcome(record=record, status=DeletionStatus.FAILED)

        try:
            reason = procedure.skip_reason(record)
        except ClientError as e:
            if is_not_found(e):
                return self._absent(outcome)
            logger.debug(f"Could not check whether {record} must be skipped: {e}")
            reason = None

        if reason:
            logger.info(f"Skipping {record}: {reason}")
            outcome.status = DeletionStatus.SKIPPED
            outcome.message = reason
            return outcome.finalize()

        if not self._delete_with_retries(procedure, record, outcome):
            return outcome.finalize()

        if procedure.wait_policy is not None and procedure.has_probe and outcome.message != ALREADY_ABSENT:
            finished = poll_until(
                lambda: procedure.is_deleted(record),
                procedure.wait_policy,
                f"{record} to finish deleting",
                sleep=self.sleep,
            )
            if not finished:
                # Deletion continues in the background; the run moves on
                outcome.message = "delete requested, still in progress after wait"

        return outcome.finalize()

    def _delete_with_retries(
        self,
        procedure: DeletionProcedure,
        record: ResourceRecord,
        outcome: DeletionOutcome,
    ) -> bool:
        """Run pre-steps and the delete call up to the retry bound.

        Returns:
            True if the resource is deleted (or was already absent)
        """
        policy = procedure.retry_policy
        sleep = self.sleep or time.sleep

        for attempt in range(1, policy.max_attempts + 1):
            try:
                outcome.attempts += 1
                procedure.pre_steps(record)
                procedure.primary_delete(record)
            except ClientError as e:
                if is_not_found(e):
                    logger.info(f"{record} {ALREADY_ABSENT}")
                    self._absent(outcome)
                    return True
                if procedure.deletion_in_progress(e):
                    logger.info(f"{record} is already being deleted")
                    outcome.status = DeletionStatus.SUCCEEDED
                    outcome.message = "deletion already in progress"
                    return True

                outcome.error_code = error_code(e)
                outcome.message = f"{outcome.error_code}: {error_message(e)}"
                if is_permission_error(e):
                    logger.error(f"Failed to delete {record}: {outcome.message}")
                    return False
            except BotoCoreError as e:
                outcome.error_code = type(e).__name__
                outcome.message = f"{outcome.error_code}: {e}"
            else:
                logger.info(f"Deleted {record}")
                outcome.status = DeletionStatus.SUCCEEDED
                outcome.error_code = None
                outcome.message = "deleted"
                return True

            if attempt < policy.max_attempts:
                logger.warning(
                    f"Delete of {record} failed ({outcome.message}), "
                    f"retrying in {policy.delay_seconds:g}s (attempt {attempt}/{policy.max_attempts})"
                )
                sleep(policy.delay_seconds)

        outcome.message = f"failed after {policy.max_attempts} attempts: {outcome.message}"
        logger.error(f"Failed to delete {record}: {outcome.message}")
        return False

    @staticmethod
    def _absent(outcome: DeletionOutcome) -> DeletionOutcome:
        outcome.status = DeletionStatus.SUCCEEDED
        outcome.error_code = None
        outcome.message = ALREADY_ABSENT
        return outcome.finalize()
