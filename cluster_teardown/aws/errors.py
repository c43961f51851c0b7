"""Classification of AWS error codes for deletion handling."""

from __future__ import annotations

from botocore.exceptions import ClientError

# Codes that mean the resource is already gone
NOT_FOUND_CODES = frozenset(
    {
        "NoSuchEntity",
        "ResourceNotFoundException",
        "RepositoryNotFoundException",
        "LoadBalancerNotFound",
        "AccessPointNotFound",
        "TargetGroupNotFound",
        "NatGatewayNotFound",
        "FileSystemNotFound",
        "MountTargetNotFound",
        "DBInstanceNotFound",
        "DBClusterNotFoundFault",
        "AutoScalingGroupNotFound",
    }
)

PERMISSION_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedOperation",
        "AuthFailure",
        "InvalidClientTokenId",
        "ExpiredToken",
        "UnrecognizedClientException",
    }
)


def error_code(error: ClientError) -> str:
    """Extract the AWS error code from a ClientError."""
    return error.response.get("Error", {}).get("Code", "Unknown")


def error_message(error: ClientError) -> str:
    """Extract the AWS error message from a ClientError."""
    return error.response.get("Error", {}).get("Message", str(error))


def is_not_found(error: ClientError) -> bool:
    """Check whether an error says the resource no longer exists."""
    code = error_code(error)
    if code in NOT_FOUND_CODES:
        return True
    if code.endswith("NotFound") or code.endswith("NotFoundFault"):
        return True
    # CloudFormation and Auto Scaling report a missing resource as a ValidationError
    message = error_message(error)
    return code == "ValidationError" and ("does not exist" in message or "not found" in message)


def is_permission_error(error: ClientError) -> bool:
    """Check whether an error is a credential/permission failure (never retried)."""
    return error_code(error) in PERMISSION_CODES
