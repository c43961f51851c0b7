"""Inventory loading into a resource catalog.

The inventory is produced by an external discovery tool: a mapping of resource
type key to a list of raw records, each record a list whose first element is the
resource identifier, plus a top-level region and an optional nested "iam" mapping.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from ..models.record import ResourceRecord
from ..models.resource_type import ResourceType

logger = logging.getLogger(__name__)

# Nested identity sub-mapping key -> flattened type key
IAM_SECTION = "iam"
IAM_KEYS = {
    "roles": ResourceType.IAM_ROLE.value,
    "policies": ResourceType.IAM_POLICY.value,
    "instance_profiles": ResourceType.IAM_INSTANCE_PROFILE.value,
}

METADATA_KEYS = ("region", "cluster_name", "infra_id")


class MalformedInventory(ValueError):
    """Raised when an inventory document cannot be parsed into a catalog."""


class Catalog:
    """Discovered resources grouped by type key, in source document order.

    Attributes:
        region: AWS region of the inventory
        source: Path the inventory was read from
        cluster_name: Cluster name from the inventory (optional)
    """

    def __init__(
        self,
        region: str,
        records: Dict[str, List[Tuple[Any, ...]]],
        source: str = "",
        cluster_name: Optional[str] = None,
    ) -> None:
        self.region = region
        self.source = source
        self.cluster_name = cluster_name
        self._records = records

    @property
    def type_names(self) -> List[str]:
        """Type keys present in the catalog, in document order."""
        return list(self._records)

    def for_each_type(self, type_name: str) -> Iterator[ResourceRecord]:
        """Yield the records of one type in source order.

        Each call starts a fresh iteration; unknown types yield nothing.
        """
        for raw in self._records.get(type_name, []):
            yield ResourceRecord(type_name=type_name, resource_id=str(raw[0]), attributes=raw)

    def __iter__(self) -> Iterator[ResourceRecord]:
        for type_name in self._records:
            yield from self.for_each_type(type_name)

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())

    def count(self, type_name: str) -> int:
        return len(self._records.get(type_name, []))

    @classmethod
    def from_dict(cls, data: Any, source: str = "") -> Catalog:
        """Build a catalog from a parsed inventory document.

        Raises:
            MalformedInventory: If the document is not a valid inventory
        """
        if not isinstance(data, dict):
            raise MalformedInventory(f"Inventory {source or '<memory>'} must be a mapping")

        region = data.get("region")
        if not region or not isinstance(region, str):
            raise MalformedInventory(f"Inventory {source or '<memory>'} has no region")

        records: Dict[str, List[Tuple[Any, ...]]] = {}
        for key, value in data.items():
            if key in METADATA_KEYS:
                continue

            if key == IAM_SECTION:
                if not isinstance(value, dict):
                    raise MalformedInventory(f"Inventory section '{IAM_SECTION}' must be a mapping")
                for sub_key, sub_value in value.items():
                    type_name = IAM_KEYS.get(sub_key, f"iam_{sub_key}")
                    records[type_name] = _parse_records(type_name, sub_value)
                continue

            if isinstance(value, list):
                records[key] = _parse_records(key, value)
            else:
                logger.debug(f"Ignoring inventory metadata key '{key}'")

        cluster_name = data.get("cluster_name") or data.get("infra_id")
        return cls(region=region, records=records, source=source, cluster_name=cluster_name)


def _parse_records(type_name: str, value: Any) -> List[Tuple[Any, ...]]:
    if not isinstance(value, list):
        raise MalformedInventory(f"Inventory entry '{type_name}' must be a list of records")

    parsed = []
    for position, raw in enumerate(value):
        if isinstance(raw, str) and raw:
            parsed.append((raw,))
        elif isinstance(raw, list) and raw and raw[0] not in (None, ""):
            parsed.append(tuple(raw))
        else:
            raise MalformedInventory(f"Record {position} of '{type_name}' has no identifier: {raw!r}")
    return parsed


def load_inventory(path: str | Path) -> Catalog:
    """Load an inventory document (JSON, or YAML by suffix) into a catalog.

    Args:
        path: Inventory file path

    Returns:
        Catalog of discovered resources

    Raises:
        MalformedInventory: If the file is missing or cannot be parsed
    """
    inventory_path = Path(path)
    try:
        with open(inventory_path, "r", encoding="utf-8") as f:
            if inventory_path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise MalformedInventory(f"Cannot read inventory {inventory_path}: {e}") from e
    except (UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise MalformedInventory(f"Cannot parse inventory {inventory_path}: {e}") from e

    catalog = Catalog.from_dict(data, source=str(inventory_path))
    logger.info(f"Loaded {len(catalog)} resources of {len(catalog.type_names)} types from {inventory_path}")
    return catalog
