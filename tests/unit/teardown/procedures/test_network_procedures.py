"""Tests for VPC networking deletion procedures."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from cluster_teardown.teardown.procedures.network import (
    ElasticIpProcedure,
    InternetGatewayProcedure,
    NatGatewayProcedure,
    NetworkAclProcedure,
    NetworkInterfaceProcedure,
    RouteTableProcedure,
    SecurityGroupProcedure,
    VpcEndpointProcedure,
)
from tests.fixtures.inventories import FakeClients, client_error, ec2_client, make_record


@pytest.fixture
def ec2() -> Mock:
    return ec2_client()


@pytest.fixture
def clients(ec2: Mock) -> FakeClients:
    return FakeClients(ec2=ec2)


class TestSecurityGroupProcedure:
    """Test suite for security group deletion."""

    def test_default_group_is_skipped(self, clients: FakeClients) -> None:
        """Test the default group is left for its VPC."""
        procedure = SecurityGroupProcedure(clients)

        assert "default" in procedure.skip_reason(make_record("security_groups", "sg-1", "default", "vpc-1"))

    def test_default_group_detected_without_recorded_name(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the group name is looked up when not recorded."""
        ec2.describe_security_groups.return_value = {"SecurityGroups": [{"GroupName": "default"}]}

        assert SecurityGroupProcedure(clients).skip_reason(make_record("security_groups", "sg-1")) is not None

    def test_pre_steps_revoke_all_rules(self, clients: FakeClients, ec2: Mock) -> None:
        """Test ingress and egress rules are revoked before delete."""
        ingress = [{"IpProtocol": "tcp", "FromPort": 443, "ToPort": 443, "UserIdGroupPairs": [{"GroupId": "sg-2"}]}]
        egress = [{"IpProtocol": "-1", "IpRanges": [{"CidrIp": "0.0.0.0/0"}]}]
        ec2.describe_security_groups.return_value = {
            "SecurityGroups": [{"GroupName": "web", "IpPermissions": ingress, "IpPermissionsEgress": egress}]
        }
        procedure = SecurityGroupProcedure(clients)
        record = make_record("security_groups", "sg-1", "web", "vpc-1")

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        ec2.revoke_security_group_ingress.assert_called_once_with(GroupId="sg-1", IpPermissions=ingress)
        ec2.revoke_security_group_egress.assert_called_once_with(GroupId="sg-1", IpPermissions=egress)
        ec2.delete_security_group.assert_called_once_with(GroupId="sg-1")


class TestRouteTableProcedure:
    """Test suite for route table deletion."""

    def test_main_route_table_is_skipped(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the main table is left for its VPC."""
        ec2.describe_route_tables.return_value = {"RouteTables": [{"Associations": [{"Main": True}]}]}

        assert RouteTableProcedure(clients).skip_reason(make_record("route_tables", "rtb-1")) is not None

    def test_pre_steps_clear_routes_and_associations(self, clients: FakeClients, ec2: Mock) -> None:
        """Test non-main associations and non-local routes are removed."""
        ec2.describe_route_tables.return_value = {
            "RouteTables": [
                {
                    "Associations": [
                        {"RouteTableAssociationId": "rtbassoc-1", "SubnetId": "subnet-1", "Main": False},
                    ],
                    "Routes": [
                        {"DestinationCidrBlock": "10.0.0.0/16", "GatewayId": "local", "Origin": "CreateRouteTable"},
                        {"DestinationCidrBlock": "0.0.0.0/0", "NatGatewayId": "nat-1", "Origin": "CreateRoute"},
                    ],
                }
            ]
        }

        RouteTableProcedure(clients).pre_steps(make_record("route_tables", "rtb-1", "vpc-1"))

        ec2.disassociate_route_table.assert_called_once_with(AssociationId="rtbassoc-1")
        ec2.delete_route.assert_called_once_with(RouteTableId="rtb-1", DestinationCidrBlock="0.0.0.0/0")


class TestNetworkInterfaceProcedure:
    """Test suite for network interface deletion."""

    def test_attached_interface_is_detached_and_awaited(self, clients: FakeClients, ec2: Mock) -> None:
        """Test detach with the recorded attachment id, then wait for available."""
        ec2.describe_network_interfaces.side_effect = [
            {"NetworkInterfaces": [{"Status": "in-use", "Attachment": {"AttachmentId": "eni-attach-9"}}]},
            {"NetworkInterfaces": [{"Status": "detaching"}]},
            {"NetworkInterfaces": [{"Status": "available"}]},
        ]
        sleep = Mock()
        procedure = NetworkInterfaceProcedure(clients, sleep=sleep)

        procedure.pre_steps(make_record("network_interfaces", "eni-1", "eni-attach-1"))

        ec2.detach_network_interface.assert_called_once_with(AttachmentId="eni-attach-1", Force=True)
        sleep.assert_called_once_with(5)

    def test_available_interface_is_not_detached(self, clients: FakeClients, ec2: Mock) -> None:
        """Test unattached interfaces go straight to delete."""
        ec2.describe_network_interfaces.return_value = {"NetworkInterfaces": [{"Status": "available"}]}

        NetworkInterfaceProcedure(clients).pre_steps(make_record("network_interfaces", "eni-1"))

        ec2.detach_network_interface.assert_not_called()


class TestInternetGatewayProcedure:
    """Test suite for internet gateway deletion."""

    def test_detaches_from_recorded_vpc(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the VPC comes from the record, not a describe call."""
        procedure = InternetGatewayProcedure(clients)
        record = make_record("internet_gateways", "igw-1", "vpc-1")

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        ec2.detach_internet_gateway.assert_called_once_with(InternetGatewayId="igw-1", VpcId="vpc-1")
        ec2.describe_internet_gateways.assert_not_called()
        ec2.delete_internet_gateway.assert_called_once_with(InternetGatewayId="igw-1")

    def test_not_attached_is_benign(self, clients: FakeClients, ec2: Mock) -> None:
        """Test a gateway already detached does not fail the pre-step."""
        ec2.detach_internet_gateway.side_effect = client_error("Gateway.NotAttached")

        InternetGatewayProcedure(clients).pre_steps(make_record("internet_gateways", "igw-1", "vpc-1"))

    def test_no_recorded_vpc_skips_detach(self, clients: FakeClients, ec2: Mock) -> None:
        """Test gateways without a recorded VPC are deleted directly."""
        InternetGatewayProcedure(clients).pre_steps(make_record("internet_gateways", "igw-1"))

        ec2.detach_internet_gateway.assert_not_called()


class TestElasticIpProcedure:
    """Test suite for elastic IP release."""

    def test_disassociates_then_releases(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the recorded association is removed first."""
        procedure = ElasticIpProcedure(clients)
        record = make_record("elastic_ips", "eipalloc-1", "eipassoc-1")

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        ec2.disassociate_address.assert_called_once_with(AssociationId="eipassoc-1")
        ec2.release_address.assert_called_once_with(AllocationId="eipalloc-1")


class TestNetworkAclProcedure:
    """Test suite for network ACL deletion."""

    def test_default_acl_is_skipped(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the default ACL is left for its VPC."""
        ec2.describe_network_acls.return_value = {"NetworkAcls": [{"IsDefault": True}]}

        assert NetworkAclProcedure(clients).skip_reason(make_record("network_acls", "acl-1")) is not None

    def test_subnets_move_to_default_acl(self, clients: FakeClients, ec2: Mock) -> None:
        """Test associations are replaced with the VPC default ACL."""
        ec2.describe_network_acls.side_effect = [
            {
                "NetworkAcls": [
                    {
                        "VpcId": "vpc-1",
                        "Associations": [{"NetworkAclAssociationId": "aclassoc-1", "SubnetId": "subnet-1"}],
                    }
                ]
            },
            {"NetworkAcls": [{"NetworkAclId": "acl-default"}]},
        ]

        NetworkAclProcedure(clients).pre_steps(make_record("network_acls", "acl-1", "vpc-1"))

        ec2.replace_network_acl_association.assert_called_once_with(
            AssociationId="aclassoc-1", NetworkAclId="acl-default"
        )


class TestNatGatewayProcedure:
    """Test suite for NAT gateway deletion."""

    def test_deleted_state_is_terminal(self, clients: FakeClients, ec2: Mock) -> None:
        """Test the probe accepts the deleted state."""
        procedure = NatGatewayProcedure(clients)
        record = make_record("nat_gateways", "nat-1")

        ec2.describe_nat_gateways.return_value = {"NatGateways": [{"State": "deleting"}]}
        assert procedure.is_deleted(record) is False

        ec2.describe_nat_gateways.return_value = {"NatGateways": [{"State": "deleted"}]}
        assert procedure.is_deleted(record) is True


class TestVpcEndpointProcedure:
    """Test suite for VPC endpoint deletion."""

    def test_unsuccessful_item_raises(self, clients: FakeClients, ec2: Mock) -> None:
        """Test per-endpoint failures in the response become ClientErrors."""
        ec2.delete_vpc_endpoints.return_value = {
            "Unsuccessful": [{"Error": {"Code": "InvalidVpcEndpoint.NotFound", "Message": "gone"}}]
        }

        with pytest.raises(ClientError) as excinfo:
            VpcEndpointProcedure(clients).primary_delete(make_record("vpc_endpoints", "vpce-1"))

        assert excinfo.value.response["Error"]["Code"] == "InvalidVpcEndpoint.NotFound"
