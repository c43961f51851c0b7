"""Tests for IAM deletion procedures."""

from __future__ import annotations

from unittest.mock import Mock

from cluster_teardown.teardown.procedures.identity import (
    IamInstanceProfileProcedure,
    IamPolicyProcedure,
    IamRoleProcedure,
)
from tests.fixtures.inventories import FakeClients, make_record, paginator


class TestIamRoleProcedure:
    """Test suite for IAM role deletion."""

    def test_pre_steps_detach_everything(self) -> None:
        """Test managed, inline and instance-profile links are removed."""
        iam = Mock()
        paginators = {
            "list_attached_role_policies": paginator({"AttachedPolicies": [{"PolicyArn": "arn:policy/a"}]}),
            "list_role_policies": paginator({"PolicyNames": ["inline-1"]}),
            "list_instance_profiles_for_role": paginator(
                {"InstanceProfiles": [{"InstanceProfileName": "master-profile"}]}
            ),
        }
        iam.get_paginator.side_effect = lambda operation: paginators[operation]
        procedure = IamRoleProcedure(FakeClients(iam=iam))
        record = make_record("iam_roles", "master-role")

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        iam.detach_role_policy.assert_called_once_with(RoleName="master-role", PolicyArn="arn:policy/a")
        iam.delete_role_policy.assert_called_once_with(RoleName="master-role", PolicyName="inline-1")
        iam.remove_role_from_instance_profile.assert_called_once_with(
            InstanceProfileName="master-profile", RoleName="master-role"
        )
        iam.delete_role.assert_called_once_with(RoleName="master-role")


class TestIamPolicyProcedure:
    """Test suite for IAM policy deletion."""

    def test_detach_and_delete_versions(self) -> None:
        """Test the policy is detached from all principals and old versions removed."""
        iam = Mock()
        paginators = {
            "list_entities_for_policy": paginator(
                {
                    "PolicyRoles": [{"RoleName": "worker-role"}],
                    "PolicyUsers": [{"UserName": "ci"}],
                    "PolicyGroups": [],
                }
            ),
            "list_policy_versions": paginator(
                {"Versions": [{"VersionId": "v2", "IsDefaultVersion": True}, {"VersionId": "v1"}]}
            ),
        }
        iam.get_paginator.side_effect = lambda operation: paginators[operation]
        arn = "arn:aws:iam::123456789012:policy/cluster-policy"

        IamPolicyProcedure(FakeClients(iam=iam)).pre_steps(make_record("iam_policies", arn))

        iam.detach_role_policy.assert_called_once_with(RoleName="worker-role", PolicyArn=arn)
        iam.detach_user_policy.assert_called_once_with(UserName="ci", PolicyArn=arn)
        iam.detach_group_policy.assert_not_called()
        iam.delete_policy_version.assert_called_once_with(PolicyArn=arn, VersionId="v1")


class TestIamInstanceProfileProcedure:
    """Test suite for instance profile deletion."""

    def test_roles_removed_first(self) -> None:
        """Test roles are removed before the profile is deleted."""
        iam = Mock()
        iam.get_instance_profile.return_value = {"InstanceProfile": {"Roles": [{"RoleName": "worker-role"}]}}
        procedure = IamInstanceProfileProcedure(FakeClients(iam=iam))
        record = make_record("iam_instance_profiles", "worker-profile")

        procedure.pre_steps(record)
        procedure.primary_delete(record)

        iam.remove_role_from_instance_profile.assert_called_once_with(
            InstanceProfileName="worker-profile", RoleName="worker-role"
        )
        iam.delete_instance_profile.assert_called_once_with(InstanceProfileName="worker-profile")
