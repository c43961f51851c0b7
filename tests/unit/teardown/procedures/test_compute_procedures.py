"""Tests for compute and load balancing deletion procedures."""

from __future__ import annotations

from unittest.mock import Mock

from cluster_teardown.teardown.procedures.compute import (
    AutoscalingGroupProcedure,
    Ec2InstanceProcedure,
    EbsVolumeProcedure,
    LaunchTemplateProcedure,
)
from cluster_teardown.teardown.procedures.load_balancing import LoadBalancerProcedure
from tests.fixtures.inventories import FakeClients, client_error, ec2_client, make_record


class TestEc2InstanceProcedure:
    """Test suite for instance termination."""

    def test_terminate(self) -> None:
        """Test the terminate call."""
        ec2 = ec2_client()
        Ec2InstanceProcedure(FakeClients(ec2=ec2)).primary_delete(make_record("ec2_instances", "i-001"))

        ec2.terminate_instances.assert_called_once_with(InstanceIds=["i-001"])

    def test_probe(self) -> None:
        """Test terminated and vanished instances are terminal."""
        ec2 = ec2_client()
        procedure = Ec2InstanceProcedure(FakeClients(ec2=ec2))
        record = make_record("ec2_instances", "i-001")

        ec2.describe_instances.return_value = {
            "Reservations": [{"Instances": [{"State": {"Name": "shutting-down"}}]}]
        }
        assert procedure.is_deleted(record) is False

        ec2.describe_instances.return_value = {"Reservations": [{"Instances": [{"State": {"Name": "terminated"}}]}]}
        assert procedure.is_deleted(record) is True

        ec2.describe_instances.side_effect = client_error("InvalidInstanceID.NotFound")
        assert procedure.is_deleted(record) is True

    def test_describe(self) -> None:
        """Test the enrichment line."""
        ec2 = ec2_client()
        ec2.describe_instances.return_value = {
            "Reservations": [
                {
                    "Instances": [
                        {
                            "InstanceType": "m5.xlarge",
                            "State": {"Name": "running"},
                            "Tags": [{"Key": "Name", "Value": "cluster-master-0"}],
                        }
                    ]
                }
            ]
        }

        details = Ec2InstanceProcedure(FakeClients(ec2=ec2)).describe(make_record("ec2_instances", "i-001"))

        assert details == "cluster-master-0 (m5.xlarge, running)"


class TestEbsVolumeProcedure:
    """Test suite for volume deletion."""

    def test_attached_volume_is_force_detached(self) -> None:
        """Test attached volumes are detached and awaited."""
        ec2 = ec2_client()
        ec2.describe_volumes.side_effect = [
            {"Volumes": [{"State": "in-use", "Attachments": [{"InstanceId": "i-001", "State": "attached"}]}]},
            {"Volumes": [{"State": "available", "Attachments": []}]},
        ]
        sleep = Mock()

        EbsVolumeProcedure(FakeClients(ec2=ec2), sleep=sleep).pre_steps(make_record("ebs_volumes", "vol-1"))

        ec2.detach_volume.assert_called_once_with(VolumeId="vol-1", InstanceId="i-001", Force=True)
        sleep.assert_not_called()


class TestAutoscalingGroupProcedure:
    """Test suite for autoscaling group deletion."""

    def test_force_delete(self) -> None:
        """Test groups are deleted with their instances."""
        autoscaling = Mock()
        AutoscalingGroupProcedure(FakeClients(autoscaling=autoscaling)).primary_delete(
            make_record("autoscaling_groups", "workers")
        )

        autoscaling.delete_auto_scaling_group.assert_called_once_with(AutoScalingGroupName="workers", ForceDelete=True)

    def test_delete_in_progress(self) -> None:
        """Test a scaling activity in progress counts as deletion under way."""
        procedure = AutoscalingGroupProcedure(FakeClients())
        error = client_error("ScalingActivityInProgress", "Scaling activity is in progress")

        assert procedure.deletion_in_progress(error) is True


class TestLaunchTemplateProcedure:
    """Test suite for launch template deletion."""

    def test_by_id_or_name(self) -> None:
        """Test ids and names use the matching parameter."""
        ec2 = ec2_client()
        procedure = LaunchTemplateProcedure(FakeClients(ec2=ec2))

        procedure.primary_delete(make_record("launch_templates", "lt-0abc"))
        procedure.primary_delete(make_record("launch_templates", "workers-template"))

        ec2.delete_launch_template.assert_any_call(LaunchTemplateId="lt-0abc")
        ec2.delete_launch_template.assert_any_call(LaunchTemplateName="workers-template")


class TestLoadBalancerProcedure:
    """Test suite for application/network load balancer deletion."""

    def test_deletion_protection_cleared_by_arn(self) -> None:
        """Test the pre-step disables deletion protection."""
        elbv2 = Mock()
        arn = "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/net/api/abc"
        procedure = LoadBalancerProcedure(FakeClients(elbv2=elbv2))
        record = make_record("load_balancers", arn)

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        elbv2.modify_load_balancer_attributes.assert_called_once_with(
            LoadBalancerArn=arn,
            Attributes=[{"Key": "deletion_protection.enabled", "Value": "false"}],
        )
        elbv2.delete_load_balancer.assert_called_once_with(LoadBalancerArn=arn)

    def test_name_is_resolved_to_arn(self) -> None:
        """Test a bare name is looked up before delete."""
        elbv2 = Mock()
        elbv2.describe_load_balancers.return_value = {"LoadBalancers": [{"LoadBalancerArn": "arn:lb"}]}

        LoadBalancerProcedure(FakeClients(elbv2=elbv2)).primary_delete(make_record("load_balancers", "api"))

        elbv2.describe_load_balancers.assert_called_once_with(Names=["api"])
        elbv2.delete_load_balancer.assert_called_once_with(LoadBalancerArn="arn:lb")

    def test_probe_treats_not_found_as_deleted(self) -> None:
        """Test a vanished load balancer is terminal."""
        elbv2 = Mock()
        elbv2.describe_load_balancers.side_effect = client_error("LoadBalancerNotFound")

        assert LoadBalancerProcedure(FakeClients(elbv2=elbv2)).is_deleted(make_record("load_balancers", "arn:lb"))
