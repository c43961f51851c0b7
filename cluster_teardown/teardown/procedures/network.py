"""VPC networking procedures.

Covers VPC endpoints, NAT gateways, route tables, network interfaces, security
groups, network ACLs, subnets, internet gateways, elastic IPs and VPCs.
"""

from __future__ import annotations

import logging
from typing import Optional

from botocore.exceptions import ClientError

from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from ..retry import RetryPolicy, WaitPolicy
from .base import DeletionProcedure, tag_value

logger = logging.getLogger(__name__)

INTERFACE_DETACH_WAIT = WaitPolicy(interval_seconds=5, max_polls=12)


class VpcEndpointProcedure(DeletionProcedure):
    """Delete a VPC endpoint."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.VPC_ENDPOINT

    def _endpoint(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("ec2").describe_vpc_endpoints, VpcEndpointIds=[record.resource_id])
        for endpoint in (response or {}).get("VpcEndpoints", []):
            return endpoint
        return None

    def primary_delete(self, record: ResourceRecord) -> None:
        response = self.client("ec2").delete_vpc_endpoints(VpcEndpointIds=[record.resource_id])
        # Per-endpoint failures come back in the response body, not as an exception
        for item in response.get("Unsuccessful", []):
            error = item.get("Error", {})
            raise ClientError(
                {"Error": {"Code": error.get("Code", "Unknown"), "Message": error.get("Message", "")}},
                "DeleteVpcEndpoints",
            )

    def is_deleted(self, record: ResourceRecord) -> bool:
        endpoint = self._endpoint(record)
        return endpoint is None or endpoint.get("State", "").lower() == "deleted"

    def describe(self, record: ResourceRecord) -> Optional[str]:
        endpoint = self._endpoint(record)
        if endpoint is None:
            return None
        return f"{endpoint.get('ServiceName')} ({endpoint.get('VpcEndpointType')}, {endpoint.get('State')})"


class NatGatewayProcedure(DeletionProcedure):
    """Delete a NAT gateway and wait until it reports "deleted"."""

    wait_policy = WaitPolicy()

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.NAT_GATEWAY

    def _gateway(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(self.client("ec2").describe_nat_gateways, NatGatewayIds=[record.resource_id])
        for gateway in (response or {}).get("NatGateways", []):
            return gateway
        return None

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_nat_gateway(NatGatewayId=record.resource_id)

    def is_deleted(self, record: ResourceRecord) -> bool:
        gateway = self._gateway(record)
        return gateway is None or gateway.get("State") == "deleted"

    def describe(self, record: ResourceRecord) -> Optional[str]:
        gateway = self._gateway(record)
        if gateway is None:
            return None
        addresses = [a.get("PublicIp") for a in gateway.get("NatGatewayAddresses", []) if a.get("PublicIp")]
        return f"{gateway.get('State')} in {gateway.get('SubnetId')} {' '.join(addresses)}".strip()


class RouteTableProcedure(DeletionProcedure):
    """Delete a route table after clearing its routes and subnet associations.

    The main route table of a VPC cannot be deleted on its own and is skipped.
    """

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.ROUTE_TABLE

    def _table(self, record: ResourceRecord) -> Optional[dict]:
        response = self.client("ec2").describe_route_tables(RouteTableIds=[record.resource_id])
        for table in response.get("RouteTables", []):
            return table
        return None

    def skip_reason(self, record: ResourceRecord) -> Optional[str]:
        table = self._table(record)
        if table and any(a.get("Main") for a in table.get("Associations", [])):
            return "main route table is removed with its VPC"
        return None

    def pre_steps(self, record: ResourceRecord) -> None:
        ec2 = self.client("ec2")
        table = self._table(record)
        if table is None:
            return

        for association in table.get("Associations", []):
            if association.get("Main") or not association.get("RouteTableAssociationId"):
                continue
            logger.debug(f"Disassociating {association['RouteTableAssociationId']} from {record.resource_id}")
            self.ignore_errors(ec2.disassociate_route_table, AssociationId=association["RouteTableAssociationId"])

        for route in table.get("Routes", []):
            if route.get("GatewayId") == "local" or route.get("Origin") == "CreateRouteTable":
                continue
            destination = {
                key: route[key]
                for key in ("DestinationCidrBlock", "DestinationIpv6CidrBlock", "DestinationPrefixListId")
                if route.get(key)
            }
            if not destination:
                continue
            logger.debug(f"Deleting route {destination} from {record.resource_id}")
            self.ignore_errors(ec2.delete_route, RouteTableId=record.resource_id, **destination)

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_route_table(RouteTableId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        table = self._table(record)
        if table is None:
            return None
        name = tag_value(table.get("Tags")) or "-"
        return f"{name} ({len(table.get('Routes', []))} routes, {len(table.get('Associations', []))} associations)"


class NetworkInterfaceProcedure(DeletionProcedure):
    """Delete a network interface, detaching it first if it is attached."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.NETWORK_INTERFACE

    def _interface(self, record: ResourceRecord) -> Optional[dict]:
        response = self.probe_absent(
            self.client("ec2").describe_network_interfaces,
            NetworkInterfaceIds=[record.resource_id],
        )
        for interface in (response or {}).get("NetworkInterfaces", []):
            return interface
        return None

    def pre_steps(self, record: ResourceRecord) -> None:
        interface = self._interface(record)
        if interface is None or interface.get("Status") == "available":
            return

        attachment = interface.get("Attachment") or {}
        attachment_id = record.attribute(1) or attachment.get("AttachmentId")
        if not attachment_id:
            return

        logger.info(f"Detaching network interface {record.resource_id} ({attachment_id})")
        self.ignore_errors(
            self.client("ec2").detach_network_interface,
            AttachmentId=attachment_id,
            Force=True,
        )
        self.wait(
            lambda: (self._interface(record) or {}).get("Status", "available") == "available",
            INTERFACE_DETACH_WAIT,
            f"network interface {record.resource_id} to detach",
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_network_interface(NetworkInterfaceId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        interface = self._interface(record)
        if interface is None:
            return None
        return f"{interface.get('Status')}, {interface.get('InterfaceType')}: {interface.get('Description') or '-'}"


class SecurityGroupProcedure(DeletionProcedure):
    """Delete a security group after revoking all of its rules.

    The default group of a VPC cannot be deleted on its own and is skipped.
    """

    retry_policy = RetryPolicy(max_attempts=5, delay_seconds=30)

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.SECURITY_GROUP

    def _group(self, record: ResourceRecord) -> Optional[dict]:
        response = self.client("ec2").describe_security_groups(GroupIds=[record.resource_id])
        for group in response.get("SecurityGroups", []):
            return group
        return None

    def skip_reason(self, record: ResourceRecord) -> Optional[str]:
        name = record.attribute(1)
        if name is None:
            group = self._group(record)
            name = group.get("GroupName") if group else None
        if name == "default":
            return "default security group is removed with its VPC"
        return None

    def pre_steps(self, record: ResourceRecord) -> None:
        ec2 = self.client("ec2")
        group = self._group(record)
        if group is None:
            return

        if group.get("IpPermissions"):
            logger.debug(f"Revoking {len(group['IpPermissions'])} ingress rule(s) of {record.resource_id}")
            self.ignore_errors(
                ec2.revoke_security_group_ingress,
                GroupId=record.resource_id,
                IpPermissions=group["IpPermissions"],
            )

        if group.get("IpPermissionsEgress"):
            logger.debug(f"Revoking {len(group['IpPermissionsEgress'])} egress rule(s) of {record.resource_id}")
            self.ignore_errors(
                ec2.revoke_security_group_egress,
                GroupId=record.resource_id,
                IpPermissions=group["IpPermissionsEgress"],
            )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_security_group(GroupId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        group = self._group(record)
        if group is None:
            return None
        return (
            f"{group.get('GroupName')}: {group.get('Description') or '-'} "
            f"({len(group.get('IpPermissions', []))} in / {len(group.get('IpPermissionsEgress', []))} out)"
        )


class NetworkAclProcedure(DeletionProcedure):
    """Delete a network ACL, moving its subnets back to the VPC default ACL first.

    The default ACL of a VPC cannot be deleted on its own and is skipped.
    """

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.NETWORK_ACL

    def _acl(self, record: ResourceRecord) -> Optional[dict]:
        response = self.client("ec2").describe_network_acls(NetworkAclIds=[record.resource_id])
        for acl in response.get("NetworkAcls", []):
            return acl
        return None

    def skip_reason(self, record: ResourceRecord) -> Optional[str]:
        acl = self._acl(record)
        if acl and acl.get("IsDefault"):
            return "default network ACL is removed with its VPC"
        return None

    def pre_steps(self, record: ResourceRecord) -> None:
        ec2 = self.client("ec2")
        acl = self._acl(record)
        if acl is None or not acl.get("Associations"):
            return

        response = ec2.describe_network_acls(
            Filters=[
                {"Name": "vpc-id", "Values": [acl["VpcId"]]},
                {"Name": "default", "Values": ["true"]},
            ]
        )
        defaults = response.get("NetworkAcls", [])
        if not defaults:
            return

        for association in acl["Associations"]:
            logger.debug(f"Moving {association.get('SubnetId')} to default ACL {defaults[0]['NetworkAclId']}")
            self.ignore_errors(
                ec2.replace_network_acl_association,
                AssociationId=association["NetworkAclAssociationId"],
                NetworkAclId=defaults[0]["NetworkAclId"],
            )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_network_acl(NetworkAclId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        acl = self._acl(record)
        if acl is None:
            return None
        kind = "default" if acl.get("IsDefault") else "custom"
        return f"{kind} ACL of {acl.get('VpcId')} ({len(acl.get('Associations', []))} subnet(s))"


class SubnetProcedure(DeletionProcedure):
    """Delete a subnet."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.SUBNET

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_subnet(SubnetId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ec2").describe_subnets(SubnetIds=[record.resource_id])
        for subnet in response.get("Subnets", []):
            name = tag_value(subnet.get("Tags")) or "-"
            return f"{name} {subnet.get('CidrBlock')} in {subnet.get('AvailabilityZone')}"
        return None


class InternetGatewayProcedure(DeletionProcedure):
    """Detach an internet gateway from its recorded VPC, then delete it."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.INTERNET_GATEWAY

    def pre_steps(self, record: ResourceRecord) -> None:
        vpc_id = record.attribute(1)
        if not vpc_id:
            logger.debug(f"No VPC recorded for {record.resource_id}, not detaching")
            return

        logger.info(f"Detaching internet gateway {record.resource_id} from {vpc_id}")
        self.ignore_errors(
            self.client("ec2").detach_internet_gateway,
            "Gateway.NotAttached",
            InternetGatewayId=record.resource_id,
            VpcId=vpc_id,
        )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_internet_gateway(InternetGatewayId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ec2").describe_internet_gateways(InternetGatewayIds=[record.resource_id])
        for gateway in response.get("InternetGateways", []):
            attached = [a.get("VpcId") for a in gateway.get("Attachments", [])]
            return f"attached to {', '.join(attached)}" if attached else "detached"
        return None


class ElasticIpProcedure(DeletionProcedure):
    """Release an elastic IP, disassociating it first when an association is recorded."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.ELASTIC_IP

    def pre_steps(self, record: ResourceRecord) -> None:
        association_id = record.attribute(1)
        if association_id:
            self.ignore_errors(self.client("ec2").disassociate_address, AssociationId=association_id)

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").release_address(AllocationId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ec2").describe_addresses(AllocationIds=[record.resource_id])
        for address in response.get("Addresses", []):
            owner = address.get("NetworkInterfaceId") or address.get("InstanceId") or "unassociated"
            return f"{address.get('PublicIp')} ({owner})"
        return None


class VpcProcedure(DeletionProcedure):
    """Delete a VPC (fails until every contained resource is gone)."""

    retry_policy = RetryPolicy(max_attempts=5, delay_seconds=30)

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.VPC

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("ec2").delete_vpc(VpcId=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        response = self.client("ec2").describe_vpcs(VpcIds=[record.resource_id])
        for vpc in response.get("Vpcs", []):
            name = tag_value(vpc.get("Tags")) or "-"
            default = " default" if vpc.get("IsDefault") else ""
            return f"{name} {vpc.get('CidrBlock')}{default}"
        return None
