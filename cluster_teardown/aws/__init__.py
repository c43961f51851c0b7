"""AWS client construction and error classification helpers."""

from __future__ import annotations

__all__ = [
    "AwsClients",
    "create_boto_client",
    "error_code",
    "is_not_found",
    "is_permission_error",
]

from .client import AwsClients, create_boto_client
from .errors import error_code, is_not_found, is_permission_error
