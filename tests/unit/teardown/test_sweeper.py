"""Tests for OrphanSweeper."""

from __future__ import annotations

from cluster_teardown.teardown.sweeper import OrphanSweeper
from tests.fixtures.inventories import FakeClients, client_error, ec2_client, make_manifest, make_record, paginator


class TestOrphanSweeper:
    """Test suite for orphaned interface removal."""

    def test_removes_unattached_interfaces(self) -> None:
        """Test every available interface in the VPC is deleted."""
        ec2 = ec2_client()
        ec2.get_paginator.return_value = paginator(
            {"NetworkInterfaces": [{"NetworkInterfaceId": "eni-1"}, {"NetworkInterfaceId": "eni-2"}]}
        )

        removed = OrphanSweeper(FakeClients(ec2=ec2)).sweep("vpc-1")

        assert removed == 2
        ec2.get_paginator.assert_called_once_with("describe_network_interfaces")
        filters = ec2.get_paginator.return_value.paginate.call_args.kwargs["Filters"]
        assert {"Name": "vpc-id", "Values": ["vpc-1"]} in filters
        assert {"Name": "status", "Values": ["available"]} in filters
        ec2.delete_network_interface.assert_any_call(NetworkInterfaceId="eni-1")
        ec2.delete_network_interface.assert_any_call(NetworkInterfaceId="eni-2")

    def test_attached_interfaces_are_left_alone(self) -> None:
        """Test interfaces reporting an attachment are skipped."""
        ec2 = ec2_client()
        ec2.get_paginator.return_value = paginator(
            {"NetworkInterfaces": [{"NetworkInterfaceId": "eni-1", "Attachment": {"AttachmentId": "a-1"}}]}
        )

        assert OrphanSweeper(FakeClients(ec2=ec2)).sweep("vpc-1") == 0
        ec2.delete_network_interface.assert_not_called()

    def test_individual_failure_does_not_stop_sweep(self) -> None:
        """Test a failing orphan is logged and the next one is still removed."""
        ec2 = ec2_client()
        ec2.get_paginator.return_value = paginator(
            {"NetworkInterfaces": [{"NetworkInterfaceId": "eni-1"}, {"NetworkInterfaceId": "eni-2"}]}
        )
        ec2.delete_network_interface.side_effect = [client_error("InvalidNetworkInterface.InUse"), {}]

        assert OrphanSweeper(FakeClients(ec2=ec2)).sweep("vpc-1") == 1
        assert ec2.delete_network_interface.call_count == 2

    def test_listing_failure_returns_zero(self) -> None:
        """Test a failing listing is not fatal."""
        ec2 = ec2_client()
        ec2.get_paginator.return_value.paginate.side_effect = client_error("UnauthorizedOperation")

        assert OrphanSweeper(FakeClients(ec2=ec2)).sweep("vpc-1") == 0

    def test_target_vpcs_prefers_selected_vpcs(self) -> None:
        """Test selected VPCs are the sweep targets."""
        manifest = make_manifest(make_record("subnets", "subnet-1", "vpc-9"), make_record("vpcs", "vpc-1"))

        assert OrphanSweeper(FakeClients()).target_vpcs(manifest) == ["vpc-1"]

    def test_target_vpcs_from_recorded_attributes(self) -> None:
        """Test VPC ids recorded on network resources are used without selected VPCs."""
        manifest = make_manifest(
            make_record("subnets", "subnet-1", "vpc-1"),
            make_record("security_groups", "sg-1", "web", "vpc-2"),
            make_record("subnets", "subnet-2", "vpc-1"),
            make_record("ec2_instances", "i-001"),
        )

        assert OrphanSweeper(FakeClients()).target_vpcs(manifest) == ["vpc-1", "vpc-2"]
