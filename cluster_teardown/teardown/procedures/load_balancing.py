"""Load balancing procedures: application/network and classic load balancers, target groups."""

from __future__ import annotations

from typing import Optional

from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from ..retry import WaitPolicy
from .base import DeletionProcedure


class LoadBalancerProcedure(DeletionProcedure):
    """Delete an application or network load balancer and wait for it to disappear.

    The record id is normally the load balancer ARN; a bare name is resolved first.
    """

    wait_policy = WaitPolicy()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.LOAD_BALANCER

    def _arn(self, record: ResourceRecord) -> Optional[str]:
        if record.resource_id.startswith("arn:"):
            return record.resource_id
        response = self.client("elbv2").describe_load_balancers(Names=[record.resource_id])
        for lb in response.get("LoadBalancers", []):
            return lb["LoadBalancerArn"]
        return None

    def _load_balancer(self, record: ResourceRecord) -> Optional[dict]:
        elbv2 = self.client("elbv2")
        if record.resource_id.startswith("arn:"):
            response = self.probe_absent(elbv2.describe_load_balancers, LoadBalancerArns=[record.resource_id])
        else:
            response = self.probe_absent(elbv2.describe_load_balancers, Names=[record.resource_id])
        for lb in (response or {}).get("LoadBalancers", []):
            return lb
        return None

    def pre_steps(self, record: ResourceRecord) -> None:
        arn = self._arn(record)
        if arn is None:
            return
        self.ignore_errors(
            self.client("elbv2").modify_load_balancer_attributes,
            LoadBalancerArn=arn,
            Attributes=[{"Key": "deletion_protection.enabled", "Value": "false"}],
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        arn = self._arn(record) or record.resource_id
        self.client("elbv2").delete_load_balancer(LoadBalancerArn=arn)

    def is_deleted(self, record: ResourceRecord) -> bool:
        return self._load_balancer(record) is None

    def describe(self, record: ResourceRecord) -> Optional[str]:
        lb = self._load_balancer(record)
        if lb is None:
            return None
        state = lb.get("State", {}).get("Code", "unknown")
        return f"{lb.get('LoadBalancerName')} ({lb.get('Type')}, {state}) {lb.get('DNSName', '')}".strip()


class ClassicLoadBalancerProcedure(DeletionProcedure):
    """Delete a classic load balancer by name."""

    wait_policy = WaitPolicy()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.CLASSIC_LOAD_BALANCER

    def _load_balancer(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(
            self.client("elb").describe_load_balancers,
            LoadBalancerNames=[record.resource_id],
        )
        for lb in (response or {}).get("LoadBalancerDescriptions", []):
            return lb
        return None

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("elb").delete_load_balancer(LoadBalancerName=record.resource_id)

    def is_deleted(self, record: ResourceRecord) -> bool:
        return self._load_balancer(record) is None

    def describe(self, record: ResourceRecord) -> Optional[str]:
        lb = self._load_balancer(record)
        if lb is None:
            return None
        return f"{len(lb.get('Instances', []))} instance(s), {lb.get('DNSName', '')}"


class TargetGroupProcedure(DeletionProcedure):
    """Delete a target group (fails with ResourceInUse until its load balancer is gone)."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.TARGET_GROUP

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("elbv2").delete_target_group(TargetGroupArn=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("elbv2").describe_target_groups(TargetGroupArns=[record.resource_id])
        for group in response.get("TargetGroups", []):
            return (
                f"{group.get('TargetGroupName')} ({group.get('Protocol')}:{group.get('Port')}, "
                f"{group.get('TargetType')})"
            )
        return None
