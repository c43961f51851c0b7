"""Base class for deletion procedures."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Optional

from botocore.exceptions import ClientError

from ...aws.errors import error_code, is_not_found
from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from ..retry import RetryPolicy, Sleeper, WaitPolicy, poll_until


class DeletionProcedure(ABC):
    """Abstract base class for one resource type's deletion procedure.

    Each procedure should:
    1. Declare the ResourceType it handles
    2. Clear blocking sub-state in pre_steps (optional)
    3. Issue the vendor delete call in primary_delete
    4. Declare its retry_policy and, for asynchronous deletes, a wait_policy
       together with an is_deleted probe

    Attributes:
        clients: AwsClients cache for the run's region
        retry_policy: Attempt bound and fixed delay for primary_delete
        wait_policy: Post-delete polling bound (None: do not wait)
    """

    retry_policy: RetryPolicy = RetryPolicy()
    wait_policy: Optional[WaitPolicy] = None

    def __init__(self, clients: Any, sleep: Optional[Sleeper] = None) -> None:
        self.clients = clients
        self.sleep = sleep

    @property
    @abstractmethod
    def resource_type(self) -> ResourceType:
        """Resource type this procedure deletes."""
        pass

    @abstractmethod
    def primary_delete(self, record: ResourceRecord) -> None:
        """Issue the delete call; raises ClientError on failure."""
        pass

    def pre_steps(self, record: ResourceRecord) -> None:
        """Clear sub-state that would make primary_delete fail."""

    def skip_reason(self, record: ResourceRecord) -> Optional[str]:
        """Reason the resource must not be deleted on its own, None to proceed."""
        return None

    def deletion_in_progress(self, error: ClientError) -> bool:
        """Whether a delete error means a deletion is already under way."""
        return False

    def is_deleted(self, record: ResourceRecord) -> bool:
        """Probe whether the resource has reached a terminal state."""
        raise NotImplementedError

    @property
    def has_probe(self) -> bool:
        return type(self).is_deleted is not DeletionProcedure.is_deleted

    def describe(self, record: ResourceRecord) -> Optional[str]:
        """One-line vendor description of the resource, None if unavailable."""
        return None

    def client(self, service_name: str) -> Any:
        return self.clients.get(service_name)

    def wait(self, check: Callable[[], bool], policy: WaitPolicy, description: str) -> bool:
        return poll_until(check, policy, description, sleep=self.sleep)

    @staticmethod
    def paginate(client: Any, operation: str, key: str, **kwargs: Any) -> Iterator[Dict[str, Any]]:
        """Yield the items under key from every page of a paginated call."""
        paginator = client.get_paginator(operation)
        for page in paginator.paginate(**kwargs):
            yield from page.get(key, [])

    @staticmethod
    def ignore_errors(call: Callable[..., Any], *codes: str, **kwargs: Any) -> Any:
        """Invoke an AWS call, treating not-found and the given codes as done."""
        try:
            return call(**kwargs)
        except ClientError as e:
            if is_not_found(e) or error_code(e) in codes:
                return None
            raise

    @staticmethod
    def probe_absent(call: Callable[..., Any], **kwargs: Any) -> Optional[Any]:
        """Invoke a describe call, returning None when the resource is gone."""
        try:
            return call(**kwargs)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise


def tag_value(tags: Optional[list], key: str = "Name") -> Optional[str]:
    """Return the value of a tag from an AWS Tags list."""
    for tag in tags or []:
        if tag.get("Key") == key:
            return tag.get("Value")
    return None
