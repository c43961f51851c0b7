"""Deletion manifest model.

The durable, reviewable artifact that decouples selection from execution.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .record import UNKNOWN_DETAILS, EnrichedRecord, ResourceRecord


class ManifestError(ValueError):
    """Raised when a manifest cannot be written or read back."""


@dataclass
class DeletionManifest:
    """Resources chosen for deletion.

    Serialized layout:
        metadata: source_file, region, timestamp, total_selected (+ cluster_name)
        selected_resources: [{type, id, raw_data, aws_details}, ...]

    Attributes:
        source: Path of the inventory the selection was made from
        region: AWS region of the resources
        generated_at: When the selection finished (UTC)
        entries: Selected records with their descriptions, in selection order
        cluster_name: Cluster the inventory belongs to (optional)
    """

    source: str
    region: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entries: List[EnrichedRecord] = field(default_factory=list)
    cluster_name: Optional[str] = None

    @property
    def resources(self) -> List[ResourceRecord]:
        return [entry.record for entry in self.entries]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def keys(self) -> Set[Tuple[str, str]]:
        """Return the (type, id) identity of every selected resource."""
        return {entry.record.key for entry in self.entries}

    def add(self, entry: EnrichedRecord) -> DeletionManifest:
        """Return a new manifest with one more entry appended."""
        return DeletionManifest(
            source=self.source,
            region=self.region,
            generated_at=self.generated_at,
            entries=[*self.entries, entry],
            cluster_name=self.cluster_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "source_file": self.source,
            "region": self.region,
            "timestamp": self.generated_at.isoformat(),
            "total_selected": len(self.entries),
        }
        if self.cluster_name:
            metadata["cluster_name"] = self.cluster_name

        return {
            "metadata": metadata,
            "selected_resources": [
                {
                    "type": entry.record.type_name,
                    "id": entry.record.resource_id,
                    "raw_data": list(entry.record.attributes),
                    "aws_details": entry.details,
                }
                for entry in self.entries
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DeletionManifest:
        """Rebuild a manifest from its serialized form.

        Raises:
            ManifestError: If required fields are missing or malformed
        """
        try:
            metadata = data["metadata"]
            if not isinstance(metadata, dict):
                raise TypeError("metadata must be a mapping")

            entries = []
            for position, item in enumerate(data["selected_resources"]):
                if not isinstance(item, dict):
                    raise TypeError(f"selected resource {position} must be a mapping, got {item!r}")
                raw = item.get("raw_data") or [item["id"]]
                record = ResourceRecord(
                    type_name=str(item["type"]),
                    resource_id=str(item["id"]),
                    attributes=tuple(raw),
                )
                entries.append(EnrichedRecord(record=record, details=item.get("aws_details") or UNKNOWN_DETAILS))

            return cls(
                source=metadata.get("source_file", ""),
                region=metadata["region"],
                generated_at=datetime.fromisoformat(metadata["timestamp"]),
                entries=entries,
                cluster_name=metadata.get("cluster_name"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ManifestError(f"Invalid manifest: {e}") from e

    def save(self, path: str | Path) -> Path:
        """Write the manifest as JSON.

        Raises:
            ManifestError: If the file cannot be written
        """
        output_path = Path(path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise ManifestError(f"Cannot write manifest {output_path}: {e}") from e
        return output_path

    @classmethod
    def load(cls, path: str | Path) -> DeletionManifest:
        """Read a manifest written by save().

        Raises:
            ManifestError: If the file is missing or not a valid manifest
        """
        manifest_path = Path(path)
        try:
            with open(manifest_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestError(f"Cannot read manifest {manifest_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Invalid manifest {manifest_path}: expected a JSON object")
        return cls.from_dict(data)
