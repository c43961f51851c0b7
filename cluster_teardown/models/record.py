"""Inventory record models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .resource_type import ResourceType

UNKNOWN_DETAILS = "unknown"


@dataclass(frozen=True)
class ResourceRecord:
    """A single raw record read from the inventory.

    Identity is (type_name, resource_id). Records whose inventory key is not a
    known ResourceType keep their key in type_name and resolve to no type.

    Attributes:
        type_name: Inventory key the record was listed under (e.g., "subnets")
        resource_id: Resource identifier (first element of the raw record)
        attributes: Full raw record, identifier included, in source order
    """

    type_name: str
    resource_id: str
    attributes: Tuple[Any, ...] = ()

    @property
    def resource_type(self) -> Optional[ResourceType]:
        return ResourceType.parse(self.type_name)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.type_name, self.resource_id)

    def attribute(self, index: int) -> Optional[Any]:
        """Return the raw attribute at a position, None when absent or blank."""
        if index < len(self.attributes):
            value = self.attributes[index]
            if value not in ("", None, "None"):
                return value
        return None

    def __str__(self) -> str:
        return f"{self.type_name}/{self.resource_id}"


@dataclass(frozen=True)
class EnrichedRecord:
    """A record plus a descriptive string fetched at selection time."""

    record: ResourceRecord
    details: str = UNKNOWN_DETAILS


@dataclass(frozen=True)
class SelectionDecision:
    """Selector verdict for one record."""

    record: EnrichedRecord
    selected: bool
