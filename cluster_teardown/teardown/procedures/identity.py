"""IAM procedures: roles, policies and instance profiles."""

from __future__ import annotations

import logging
from typing import Optional

from ...models.record import ResourceRecord
from ...models.resource_type import ResourceType
from .base import DeletionProcedure

logger = logging.getLogger(__name__)


class IamRoleProcedure(DeletionProcedure):
    """Delete an IAM role after detaching its policies and instance profiles."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.IAM_ROLE

    def pre_steps(self, record: ResourceRecord) -> None:
        iam = self.client("iam")
        role_name = record.resource_id

        for policy in list(self.paginate(iam, "list_attached_role_policies", "AttachedPolicies", RoleName=role_name)):
            logger.debug(f"Detaching {policy['PolicyArn']} from role {role_name}")
            self.ignore_errors(iam.detach_role_policy, RoleName=role_name, PolicyArn=policy["PolicyArn"])

        for policy_name in list(self.paginate(iam, "list_role_policies", "PolicyNames", RoleName=role_name)):
            logger.debug(f"Deleting inline policy {policy_name} of role {role_name}")
            self.ignore_errors(iam.delete_role_policy, RoleName=role_name, PolicyName=policy_name)

        for profile in list(
            self.paginate(iam, "list_instance_profiles_for_role", "InstanceProfiles", RoleName=role_name)
        ):
            logger.debug(f"Removing role {role_name} from instance profile {profile['InstanceProfileName']}")
            self.ignore_errors(
                iam.remove_role_from_instance_profile,
                InstanceProfileName=profile["InstanceProfileName"],
                RoleName=role_name,
            )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("iam").delete_role(RoleName=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        role = self.client("iam").get_role(RoleName=record.resource_id)["Role"]
        return f"{role.get('Arn')} (created {role.get('CreateDate')})"


class IamPolicyProcedure(DeletionProcedure):
    """Delete a customer-managed IAM policy, detaching it everywhere first."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.IAM_POLICY

    def pre_steps(self, record: ResourceRecord) -> None:
        iam = self.client("iam")
        arn = record.resource_id

        entities = {"PolicyRoles": [], "PolicyUsers": [], "PolicyGroups": []}
        for page in iam.get_paginator("list_entities_for_policy").paginate(PolicyArn=arn):
            for key in entities:
                entities[key].extend(page.get(key, []))

        for role in entities["PolicyRoles"]:
            self.ignore_errors(iam.detach_role_policy, RoleName=role["RoleName"], PolicyArn=arn)
        for user in entities["PolicyUsers"]:
            self.ignore_errors(iam.detach_user_policy, UserName=user["UserName"], PolicyArn=arn)
        for group in entities["PolicyGroups"]:
            self.ignore_errors(iam.detach_group_policy, GroupName=group["GroupName"], PolicyArn=arn)

        for version in list(self.paginate(iam, "list_policy_versions", "Versions", PolicyArn=arn)):
            if not version.get("IsDefaultVersion"):
                self.ignore_errors(iam.delete_policy_version, PolicyArn=arn, VersionId=version["VersionId"])

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("iam").delete_policy(PolicyArn=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        policy = self.client("iam").get_policy(PolicyArn=record.resource_id)["Policy"]
        return f"{policy.get('PolicyName')} ({policy.get('AttachmentCount', 0)} attachment(s))"


class IamInstanceProfileProcedure(DeletionProcedure):
    """Delete an IAM instance profile after removing its roles."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.IAM_INSTANCE_PROFILE

    def pre_steps(self, record: ResourceRecord) -> None:
        iam = self.client("iam")
        profile = iam.get_instance_profile(InstanceProfileName=record.resource_id)["InstanceProfile"]
        for role in profile.get("Roles", []):
            self.ignore_errors(
                iam.remove_role_from_instance_profile,
                InstanceProfileName=record.resource_id,
                RoleName=role["RoleName"],
            )

    def primary_delete(self, record: ResourceRecord) -> None:
        self.client("iam").delete_instance_profile(InstanceProfileName=record.resource_id)

    def describe(self, record: ResourceRecord) -> Optional[str]:
        profile = self.client("iam").get_instance_profile(InstanceProfileName=record.resource_id)["InstanceProfile"]
        roles = [role["RoleName"] for role in profile.get("Roles", [])]
        return f"roles: {', '.join(roles) or 'none'}"
