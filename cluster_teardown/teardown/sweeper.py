"""Orphaned network interface sweeper.

Interface release lags behind instance and load balancer termination, and a
lingering interface is the most common reason security group and subnet
deletes fail. The sweeper removes unattached interfaces from the target VPCs
right before the security group step.
"""

from __future__ import annotations

import logging
from typing import Any, List

from botocore.exceptions import BotoCoreError, ClientError

from ..aws.errors import is_not_found
from ..models.manifest import DeletionManifest
from ..models.resource_type import ResourceType

logger = logging.getLogger(__name__)

# Attribute position of the VPC id for types that record one
VPC_ATTRIBUTE = {
    ResourceType.SUBNET: 1,
    ResourceType.SECURITY_GROUP: 2,
    ResourceType.ROUTE_TABLE: 1,
    ResourceType.NETWORK_ACL: 1,
    ResourceType.INTERNET_GATEWAY: 1,
}


class OrphanSweeper:
    """Removes unattached network interfaces left behind in a VPC."""

    def __init__(self, clients: Any) -> None:
        self.clients = clients

    def target_vpcs(self, manifest: DeletionManifest) -> List[str]:
        """VPCs to sweep: selected VPCs, else VPCs recorded on selected network resources."""
        vpcs = [r.resource_id for r in manifest.resources if r.resource_type == ResourceType.VPC]
        if vpcs:
            return vpcs

        found: List[str] = []
        for record in manifest.resources:
            position = VPC_ATTRIBUTE.get(record.resource_type)
            vpc_id = record.attribute(position) if position is not None else None
            if vpc_id and vpc_id not in found:
                found.append(vpc_id)
        return found

    def sweep(self, vpc_id: str) -> int:
        """Delete every available (unattached) interface in a VPC.

        Args:
            vpc_id: VPC to sweep

        Returns:
            Number of interfaces removed
        """
        ec2 = self.clients.get("ec2")
        try:
            paginator = ec2.get_paginator("describe_network_interfaces")
            orphans = [
                interface
                for page in paginator.paginate(
                    Filters=[
                        {"Name": "vpc-id", "Values": [vpc_id]},
                        {"Name": "status", "Values": ["available"]},
                    ]
                )
                for interface in page.get("NetworkInterfaces", [])
                if not interface.get("Attachment")
            ]
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Could not list network interfaces in {vpc_id}: {e}")
            return 0

        removed = 0
        for interface in orphans:
            interface_id = interface["NetworkInterfaceId"]
            try:
                ec2.delete_network_interface(NetworkInterfaceId=interface_id)
            except ClientError as e:
                if is_not_found(e):
                    continue
                logger.warning(f"Could not remove orphaned interface {interface_id}: {e}")
                continue
            except BotoCoreError as e:
                logger.warning(f"Could not remove orphaned interface {interface_id}: {e}")
                continue

            logger.info(f"Removed orphaned interface {interface_id} ({interface.get('Description') or '-'})")
            removed += 1

        logger.info(f"Swept {vpc_id}: {removed} of {len(orphans)} orphaned interface(s) removed")
        return removed
