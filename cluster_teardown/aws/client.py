"""boto3 client construction."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config as BotoConfig

logger = logging.getLogger(__name__)

# Retries are owned by the deletion procedures; keep the SDK's own retry loop short.
_BOTO_CONFIG = BotoConfig(retries={"max_attempts": 2, "mode": "standard"})


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
) -> Any:
    """Create a boto3 client for a service.

    Args:
        service_name: AWS service name (e.g., "ec2", "elbv2")
        region_name: AWS region (optional, falls back to the SDK default)
        profile_name: AWS profile name (optional)

    Returns:
        boto3 client
    """
    session = boto3.Session(profile_name=profile_name, region_name=region_name)
    return session.client(service_name, config=_BOTO_CONFIG)


class AwsClients:
    """Per-run cache of boto3 clients for a single region and profile."""

    def __init__(self, region: str, profile_name: Optional[str] = None) -> None:
        self.region = region
        self.profile_name = profile_name
        self._clients: Dict[str, Any] = {}

    def get(self, service_name: str) -> Any:
        """Return the client for a service, creating it on first use."""
        if service_name not in self._clients:
            logger.debug(f"Creating {service_name} client for {self.region}")
            self._clients[service_name] = create_boto_client(
                service_name=service_name,
                region_name=self.region,
                profile_name=self.profile_name,
            )
        return self._clients[service_name]
