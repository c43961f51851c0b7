"""Phase scheduling.

Groups manifest resources into two fixed phases: stop/disconnect services, then
tear down networking and identity. The table is a default policy tuned by
experience, checked at startup against the type dependency graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.manifest import DeletionManifest
from ..models.record import ResourceRecord
from ..models.resource_type import ResourceType
from .dependency import TypeDependencyGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Phase:
    """An ordered group of resource types that must drain before the next phase."""

    name: str
    types: Tuple[ResourceType, ...]


STOP_SERVICES = Phase(
    name="stop-services",
    types=(
        ResourceType.EC2_INSTANCE,
        ResourceType.EBS_SNAPSHOT,
        ResourceType.LOAD_BALANCER,
        ResourceType.CLASSIC_LOAD_BALANCER,
        ResourceType.TARGET_GROUP,
        ResourceType.AUTOSCALING_GROUP,
        ResourceType.LAUNCH_TEMPLATE,
        ResourceType.EKS_CLUSTER,
        ResourceType.RDS_INSTANCE,
        ResourceType.RDS_CLUSTER,
        ResourceType.VPC_ENDPOINT,
        ResourceType.NAT_GATEWAY,
        ResourceType.ECR_REPOSITORY,
        ResourceType.CLOUDFORMATION_STACK,
        ResourceType.EBS_VOLUME,
    ),
)

NETWORK_AND_IDENTITY = Phase(
    name="network-identity",
    types=(
        ResourceType.ROUTE_TABLE,
        ResourceType.NETWORK_INTERFACE,
        ResourceType.SECURITY_GROUP,
        ResourceType.NETWORK_ACL,
        ResourceType.EFS_MOUNT_TARGET,
        ResourceType.EFS_FILESYSTEM,
        ResourceType.SUBNET,
        ResourceType.INTERNET_GATEWAY,
        ResourceType.ELASTIC_IP,
        ResourceType.VPC,
        ResourceType.IAM_ROLE,
        ResourceType.IAM_POLICY,
        ResourceType.IAM_INSTANCE_PROFILE,
    ),
)

DEFAULT_PHASES: Tuple[Phase, ...] = (STOP_SERVICES, NETWORK_AND_IDENTITY)

# Manifest types with no phase (unknown inventory keys) run last and are skipped
UNSCHEDULED = Phase(name="unscheduled", types=())


@dataclass
class ScheduledPhase:
    """A phase with the manifest's resources grouped by type in table order.

    groups holds one entry per type of the phase (possibly empty) so callers can
    hook into a type's position even when nothing of that type is selected.
    """

    phase: Phase
    groups: List[Tuple[str, List[ResourceRecord]]] = field(default_factory=list)

    @property
    def records(self) -> List[ResourceRecord]:
        return [record for _, records in self.groups for record in records]

    @property
    def is_empty(self) -> bool:
        return not self.records


class PhaseScheduler:
    """Orders manifest resources by the fixed phase table.

    Raises ValueError at construction if the table is not exhaustive, lists a
    type twice, or orders a dependent type after its parent.
    """

    def __init__(
        self,
        phases: Sequence[Phase] = DEFAULT_PHASES,
        graph: Optional[TypeDependencyGraph] = None,
    ) -> None:
        self.phases = tuple(phases)
        self.graph = graph or TypeDependencyGraph.default()
        self._validate()

    def _validate(self) -> None:
        order = [t for phase in self.phases for t in phase.types]

        duplicates = sorted({t.value for t in order if order.count(t) > 1})
        if duplicates:
            raise ValueError(f"Resource types listed in more than one phase: {', '.join(duplicates)}")

        missing = [t.value for t in ResourceType if t not in order]
        if missing:
            raise ValueError(f"Resource types missing from the phase table: {', '.join(missing)}")

        violations = self.graph.violations(order)
        if violations:
            pairs = ", ".join(f"{child.value} before {parent.value}" for child, parent in violations)
            raise ValueError(f"Phase table breaks deletion dependencies (need {pairs})")

    def phase_of(self, resource_type: ResourceType) -> Phase:
        for phase in self.phases:
            if resource_type in phase.types:
                return phase
        raise KeyError(resource_type)

    def schedule(self, manifest: DeletionManifest) -> List[ScheduledPhase]:
        """Group manifest resources by phase, types in table order.

        Records of each type keep their manifest order. A trailing "unscheduled"
        phase is appended only when the manifest holds types with no phase.
        """
        by_type: Dict[str, List[ResourceRecord]] = {}
        for record in manifest.resources:
            by_type.setdefault(record.type_name, []).append(record)

        scheduled = []
        for phase in self.phases:
            groups = [(t.value, by_type.pop(t.value, [])) for t in phase.types]
            scheduled.append(ScheduledPhase(phase=phase, groups=groups))

        if by_type:
            logger.warning(f"Types with no deletion phase: {', '.join(by_type)}")
            scheduled.append(ScheduledPhase(phase=UNSCHEDULED, groups=list(by_type.items())))

        return scheduled
