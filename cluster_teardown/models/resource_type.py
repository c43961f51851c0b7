"""Resource type enumeration.

Values double as the inventory document keys produced by the discovery tool.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ResourceType(Enum):
    """Deletable AWS resource types."""

    EC2_INSTANCE = "ec2_instances"
    EBS_SNAPSHOT = "ebs_snapshots"
    LOAD_BALANCER = "load_balancers"
    CLASSIC_LOAD_BALANCER = "classic_load_balancers"
    TARGET_GROUP = "target_groups"
    AUTOSCALING_GROUP = "autoscaling_groups"
    LAUNCH_TEMPLATE = "launch_templates"
    EKS_CLUSTER = "eks_clusters"
    RDS_INSTANCE = "rds_instances"
    RDS_CLUSTER = "rds_clusters"
    VPC_ENDPOINT = "vpc_endpoints"
    NAT_GATEWAY = "nat_gateways"
    ECR_REPOSITORY = "ecr_repositories"
    CLOUDFORMATION_STACK = "cloudformation_stacks"
    EBS_VOLUME = "ebs_volumes"
    ROUTE_TABLE = "route_tables"
    NETWORK_INTERFACE = "network_interfaces"
    SECURITY_GROUP = "security_groups"
    NETWORK_ACL = "network_acls"
    EFS_MOUNT_TARGET = "efs_mount_targets"
    EFS_FILESYSTEM = "efs_filesystems"
    SUBNET = "subnets"
    INTERNET_GATEWAY = "internet_gateways"
    ELASTIC_IP = "elastic_ips"
    VPC = "vpcs"
    IAM_ROLE = "iam_roles"
    IAM_POLICY = "iam_policies"
    IAM_INSTANCE_PROFILE = "iam_instance_profiles"

    @classmethod
    def parse(cls, name: str) -> Optional[ResourceType]:
        """Look up a type by its inventory key, None if unknown."""
        try:
            return cls(name)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        """Human-readable label (e.g., "security groups")."""
        return self.value.replace("_", " ")
