"""Compute procedures: instances, snapshots, volumes, autoscaling groups, launch templates."""

from __future__ import annotations

from typing import Optional

from botocore.exceptions import ClientError

from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from ..retry import WaitPolicy
from .base import DeletionProcedure, tag_value

VOLUME_DETACH_WAIT = WaitPolicy(interval_seconds=5, max_polls=12)


class Ec2InstanceProcedure(DeletionProcedure):
    """Terminate an EC2 instance."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EC2_INSTANCE

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").terminate_instances(InstanceIds=[record.resource_id])

    def _instance(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("ec2").describe_instances, InstanceIds=[record.resource_id])
        for reservation in (response or {}).get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return instance
        return None

    def is_deleted(self, record: ResourceRecord) -> bool:
        instance = self._instance(record)
        return instance is None or instance["State"]["Name"] == "terminated"

    def describe(self, record: ResourceRecord) -> Optional[str]:
        instance = self._instance(record)
        if instance is None:
            return None
        name = tag_value(instance.get("Tags")) or "-"
        return f"{name} ({instance.get('InstanceType')}, {instance['State']['Name']})"


class EbsSnapshotProcedure(DeletionProcedure):
    """Delete an EBS snapshot."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EBS_SNAPSHOT

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_snapshot(SnapshotId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ec2").describe_snapshots(SnapshotIds=[record.resource_id])
        for snapshot in response.get("Snapshots", []):
            return f"{snapshot.get('VolumeSize')} GiB, {snapshot.get('State')}, {snapshot.get('Description') or '-'}"
        return None


class EbsVolumeProcedure(DeletionProcedure):
    """Delete an EBS volume, force-detaching it first if still attached."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EBS_VOLUME

    def _volume(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("ec2").describe_volumes, VolumeIds=[record.resource_id])
        volumes = (response or {}).get("Volumes", [])
        return volumes[0] if volumes else None

    def pre_steps(self, record: ResourceRecord) -> None:
        ec2 = self.client("ec2")
        volume = self._volume(record)
        if volume is None:
            return

        attached = [a for a in volume.get("Attachments", []) if a.get("State") in ("attached", "attaching")]
        if not attached:
            return

        for attachment in attached:
            self.ignore_errors(
                ec2.detach_volume,
                "IncorrectState",
                VolumeId=record.resource_id,
                InstanceId=attachment["InstanceId"],
                Force=True,
            )

        self.wait(
            lambda: (self._volume(record) or {}).get("State", "available") == "available",
            VOLUME_DETACH_WAIT,
            f"volume {record.resource_id} to detach",
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_volume(VolumeId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        volume = self._volume(record)
        if volume is None:
            return None
        return f"{volume.get('Size')} GiB {volume.get('VolumeType')}, {volume.get('State')}"


class AutoscalingGroupProcedure(DeletionProcedure):
    """Force-delete an autoscaling group along with its instances."""

    wait_policy = WaitPolicy()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.AUTOSCALING_GROUP

    def _group(self, record: ResourceRecord) -> Optional[dict]:
        response = self.client("autoscaling").describe_auto_scaling_groups(
            AutoScalingGroupNames=[record.resource_id]
        )
        groups = response.get("AutoScalingGroups", [])
        return groups[0] if groups else None

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("autoscaling").delete_auto_scaling_group(
            AutoScalingGroupName=record.resource_id,
            ForceDelete=True,
        )

    def deletion_in_progress(self, error: ClientError) -> bool:
        return "is in progress" in str(error)

    def is_deleted(self, record: ResourceRecord) -> bool:
        return self._group(record) is None

    def describe(self, record: ResourceRecord) -> Optional[str]:
        group = self._group(record)
        if group is None:
            return None
        status = group.get("Status") or "active"
        return f"desired {group.get('DesiredCapacity')}, {len(group.get('Instances', []))} instance(s), {status}"


class LaunchTemplateProcedure(DeletionProcedure):
    """Delete a launch template by id (lt-...) or by name."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.LAUNCH_TEMPLATE

    def primary_delete(self, record: ResourceRecord) -> None:
        ec2 = self.client("ec2")
        if record.resource_id.startswith("lt-"):
            ec2.delete_launch_template(LaunchTemplateId=record.resource_id)
        else:
            ec2.delete_launch_template(LaunchTemplateName=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        if record.resource_id.startswith("lt-"):
            response = self.client("ec2").describe_launch_templates(LaunchTemplateIds=[record.resource_id])
        else:
            response = self.client("ec2").describe_launch_templates(LaunchTemplateNames=[record.resource_id])
        for template in response.get("LaunchTemplates", []):
            return f"{template.get('LaunchTemplateName')} (latest v{template.get('LatestVersionNumber')})"
        return None
