"""Managed service procedures: EKS, RDS, ECR, CloudFormation and EFS."""

from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import ClientError

from ...aws.errors import error_code, is_not_found
from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from ..retry import RetryPolicy, WaitPolicy
from .base import DeletionProcedure

logger = logging.getLogger(__name__)

NODEGROUP_WAIT = WaitPolicy(interval_seconds=30, max_polls=40)
MOUNT_TARGET_WAIT = WaitPolicy(interval_seconds=10, max_polls=30)


class EksClusterProcedure(DeletionProcedure):
    """Delete an EKS control plane after removing its managed node groups."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EKS_CLUSTER

    def _nodegroups(self, record: ResourceRecord) -> list:
        return list(self.paginate(self.client("eks"), "list_nodegroups", "nodegroups", clusterName=record.resource_id))

    def pre_steps(self, record: ResourceRecord) -> None:
        eks = self.client("eks")
        nodegroups = self._nodegroups(record)
        if not nodegroups:
            return

        for nodegroup in nodegroups:
            logger.info(f"Deleting node group {nodegroup} of EKS cluster {record.resource_id}")
            # ResourceInUseException: already deleting
            self.ignore_errors(
                eks.delete_nodegroup,
                "ResourceInUseException",
                clusterName=record.resource_id,
                nodegroupName=nodegroup,
            )

        self.wait(
            lambda: not self._nodegroups(record),
            NODEGROUP_WAIT,
            f"node groups of EKS cluster {record.resource_id} to be deleted",
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("eks").delete_cluster(name=record.resource_id)

    def deletion_in_progress(self, error: ClientError) -> bool:
        return error_code(error) == "ResourceInUseException" and "DELETING" in str(error).upper()

    def is_deleted(self, record: ResourceRecord) -> bool:
        return self.probe_absent(self.client("eks").describe_cluster, name=record.resource_id) is None

    def describe(self, record: ResourceRecord) -> Optional[str]:
        cluster = self.client("eks").describe_cluster(name=record.resource_id)["cluster"]
        return f"Kubernetes {cluster.get('version')}, {cluster.get('status')}"


class RdsInstanceProcedure(DeletionProcedure):
    """Delete an RDS instance without a final snapshot."""

    retry_policy = RetryPolicy(max_attempts=3, delay_seconds=30)

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.RDS_INSTANCE

    def pre_steps(self, record: ResourceRecord) -> None:
        try:
            self.client("rds").modify_db_instance(
                DBInstanceIdentifier=record.resource_id,
                DeletionProtection=False,
                ApplyImmediately=True,
            )
        except ClientError as e:
            if is_not_found(e):
                raise
            logger.debug(f"Could not clear deletion protection on {record.resource_id}: {e}")

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("rds").delete_db_instance(
            DBInstanceIdentifier=record.resource_id,
            SkipFinalSnapshot=True,
            DeleteAutomatedBackups=True,
        )

    def deletion_in_progress(self, error: ClientError) -> bool:
        return "already being deleted" in str(error)

    def is_deleted(self, record: ResourceRecord) -> bool:
        return (
            self.probe_absent(self.client("rds").describe_db_instances, DBInstanceIdentifier=record.resource_id)
            is None
        )

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("rds").describe_db_instances(DBInstanceIdentifier=record.resource_id)
        for db in response.get("DBInstances", []):
            return f"{db.get('Engine')} {db.get('DBInstanceClass')}, {db.get('DBInstanceStatus')}"
        return None


class RdsClusterProcedure(DeletionProcedure):
    """Delete an RDS (Aurora) cluster without a final snapshot."""

    retry_policy = RetryPolicy(max_attempts=3, delay_seconds=30)

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.RDS_CLUSTER

    def pre_steps(self, record: ResourceRecord) -> None:
        try:
            self.client("rds").modify_db_cluster(
                DBClusterIdentifier=record.resource_id,
                DeletionProtection=False,
                ApplyImmediately=True,
            )
        except ClientError as e:
            if is_not_found(e):
                raise
            logger.debug(f"Could not clear deletion protection on {record.resource_id}: {e}")

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("rds").delete_db_cluster(
            DBClusterIdentifier=record.resource_id,
            SkipFinalSnapshot=True,
        )

    def deletion_in_progress(self, error: ClientError) -> bool:
        return "already being deleted" in str(error)

    def is_deleted(self, record: ResourceRecord) -> bool:
        return (
            self.probe_absent(self.client("rds").describe_db_clusters, DBClusterIdentifier=record.resource_id)
            is None
        )

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("rds").describe_db_clusters(DBClusterIdentifier=record.resource_id)
        for cluster in response.get("DBClusters", []):
            return f"{cluster.get('Engine')} {cluster.get('EngineVersion')}, {cluster.get('Status')}"
        return None


class EcrRepositoryProcedure(DeletionProcedure):
    """Delete an ECR repository including its images."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.ECR_REPOSITORY

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ecr").delete_repository(repositoryName=record.resource_id, force=True)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ecr").describe_repositories(repositoryNames=[record.resource_id])
        for repository in response.get("repositories", []):
            return repository.get("repositoryUri")
        return None


class CloudFormationStackProcedure(DeletionProcedure):
    """Delete a CloudFormation stack and wait for DELETE_COMPLETE."""

    wait_policy = WaitPolicy()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.CLOUDFORMATION_STACK

    def _stack(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("cloudformation").describe_stacks, StackName=record.resource_id)
        for stack in (response or {}).get("Stacks", []):
            return stack
        return None

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("cloudformation").delete_stack(StackName=record.resource_id)

    def is_deleted(self, record: ResourceRecord) -> bool:
        stack = self._stack(record)
        return stack is None or stack.get("StackStatus") == "DELETE_COMPLETE"

    def describe(self, record: ResourceRecord) -> Optional[str]:
        stack = self._stack(record)
        return stack.get("StackStatus") if stack else None


class EfsMountTargetProcedure(DeletionProcedure):
    """Delete an EFS mount target and wait for its network interface to be released."""

    wait_policy = MOUNT_TARGET_WAIT

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EFS_MOUNT_TARGET

    def _mount_target(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("efs").describe_mount_targets, MountTargetId=record.resource_id)
        for target in (response or {}).get("MountTargets", []):
            return target
        return None

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("efs").delete_mount_target(MountTargetId=record.resource_id)

    def is_deleted(self, record: ResourceRecord) -> bool:
        target = self._mount_target(record)
        return target is None or target.get("LifeCycleState") == "deleted"

    def describe(self, record: ResourceRecord) -> Optional[str]:
        target = self._mount_target(record)
        if target is None:
            return None
        return f"{target.get('FileSystemId')} in {target.get('SubnetId')} ({target.get('IpAddress')})"


class EfsFilesystemProcedure(DeletionProcedure):
    """Delete an EFS filesystem after removing any remaining mount targets."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EFS_FILESYSTEM

    def _mount_targets(self, record: ResourceRecord) -> list:
        response = self.client("efs").describe_mount_targets(FileSystemId=record.resource_id)
        return [t for t in response.get("MountTargets", []) if t.get("LifeCycleState") != "deleted"]

    def pre_steps(self, record: ResourceRecord) -> None:
        efs = self.client("efs")
        targets = self._mount_targets(record)
        if not targets:
            return

        for target in targets:
            if target.get("LifeCycleState") != "deleting":
                self.ignore_errors(efs.delete_mount_target, MountTargetId=target["MountTargetId"])

        self.wait(
            lambda: not self._mount_targets(record),
            MOUNT_TARGET_WAIT,
            f"mount targets of {record.resource_id} to be deleted",
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("efs").delete_file_system(FileSystemId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("efs").describe_file_systems(FileSystemId=record.resource_id)
        for fs in response.get("FileSystems", []):
            size = fs.get("SizeInBytes", {}).get("Value", 0)
            return f"{fs.get('Name') or '-'} ({size} bytes, {fs.get('NumberOfMountTargets', 0)} mount targets)"
        return None
