"""Type-level deletion dependencies.

An edge parent -> child means every resource of the child type must be deleted
before any resource of the parent type (a subnet before its VPC).
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models.resource_type import ResourceType

# (parent, child): child is deleted first
TYPE_DEPENDENCIES: Tuple[Tuple[ResourceType, ResourceType], ...] = (
    (ResourceType.VPC, ResourceType.SUBNET),
    (ResourceType.VPC, ResourceType.INTERNET_GATEWAY),
    (ResourceType.VPC, ResourceType.ROUTE_TABLE),
    (ResourceType.VPC, ResourceType.SECURITY_GROUP),
    (ResourceType.VPC, ResourceType.NETWORK_ACL),
    (ResourceType.VPC, ResourceType.NETWORK_INTERFACE),
    (ResourceType.VPC, ResourceType.VPC_ENDPOINT),
    (ResourceType.VPC, ResourceType.NAT_GATEWAY),
    (ResourceType.SUBNET, ResourceType.EC2_INSTANCE),
    (ResourceType.SUBNET, ResourceType.NETWORK_INTERFACE),
    (ResourceType.SUBNET, ResourceType.NAT_GATEWAY),
    (ResourceType.SUBNET, ResourceType.EFS_MOUNT_TARGET),
    (ResourceType.SUBNET, ResourceType.LOAD_BALANCER),
    (ResourceType.SUBNET, ResourceType.CLASSIC_LOAD_BALANCER),
    (ResourceType.SUBNET, ResourceType.RDS_INSTANCE),
    (ResourceType.SUBNET, ResourceType.EKS_CLUSTER),
    (ResourceType.SECURITY_GROUP, ResourceType.EC2_INSTANCE),
    (ResourceType.SECURITY_GROUP, ResourceType.NETWORK_INTERFACE),
    (ResourceType.SECURITY_GROUP, ResourceType.LOAD_BALANCER),
    (ResourceType.SECURITY_GROUP, ResourceType.CLASSIC_LOAD_BALANCER),
    (ResourceType.SECURITY_GROUP, ResourceType.RDS_INSTANCE),
    (ResourceType.SECURITY_GROUP, ResourceType.EKS_CLUSTER),
    (ResourceType.SECURITY_GROUP, ResourceType.VPC_ENDPOINT),
    (ResourceType.TARGET_GROUP, ResourceType.LOAD_BALANCER),
    (ResourceType.LAUNCH_TEMPLATE, ResourceType.AUTOSCALING_GROUP),
    (ResourceType.EBS_VOLUME, ResourceType.EC2_INSTANCE),
    (ResourceType.RDS_CLUSTER, ResourceType.RDS_INSTANCE),
    (ResourceType.ELASTIC_IP, ResourceType.NAT_GATEWAY),
    (ResourceType.EFS_FILESYSTEM, ResourceType.EFS_MOUNT_TARGET),
    (ResourceType.IAM_ROLE, ResourceType.EKS_CLUSTER),
    (ResourceType.IAM_POLICY, ResourceType.IAM_ROLE),
    (ResourceType.IAM_INSTANCE_PROFILE, ResourceType.EC2_INSTANCE),
)


class TypeDependencyGraph:
    """Dependency graph over resource types with Kahn's-algorithm ordering.

    Attributes:
        graph: child -> list of parents that must be deleted after it
    """

    def __init__(self, edges: Iterable[Tuple[ResourceType, ResourceType]] = ()) -> None:
        self.graph: Dict[ResourceType, List[ResourceType]] = {}
        for parent, child in edges:
            self.add_dependency(parent=parent, child=child)

    @classmethod
    def default(cls) -> TypeDependencyGraph:
        return cls(TYPE_DEPENDENCIES)

    def add_dependency(self, parent: ResourceType, child: ResourceType) -> None:
        """Record that child must be deleted before parent."""
        self.graph.setdefault(parent, [])
        parents = self.graph.setdefault(child, [])
        if parent not in parents:
            parents.append(parent)

    def compute_deletion_order(self, types: Sequence[ResourceType]) -> List[ResourceType]:
        """Order types so that children precede parents.

        Ties keep the order of the input sequence.

        Raises:
            ValueError: If the dependencies among the given types contain a cycle
        """
        members = list(dict.fromkeys(types))
        included = set(members)
        pending = {t: 0 for t in members}
        dependents: Dict[ResourceType, List[ResourceType]] = {t: [] for t in members}

        for child in members:
            for parent in self.graph.get(child, []):
                if parent in included:
                    pending[parent] += 1
                    dependents[child].append(parent)

        ready = deque(t for t in members if pending[t] == 0)
        order: List[ResourceType] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for parent in dependents[current]:
                pending[parent] -= 1
                if pending[parent] == 0:
                    ready.append(parent)

        if len(order) != len(members):
            cyclic = [t.value for t in members if t not in order]
            raise ValueError(f"Dependency cycle among: {', '.join(cyclic)}")
        return order

    def violations(self, order: Sequence[ResourceType]) -> List[Tuple[ResourceType, ResourceType]]:
        """Return (child, parent) pairs that the given order deletes the wrong way round."""
        position = {t: i for i, t in enumerate(order)}
        found = []
        for child, parents in self.graph.items():
            for parent in parents:
                if child in position and parent in position and position[child] > position[parent]:
                    found.append((child, parent))
        return found
