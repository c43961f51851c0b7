"""Cluster Teardown - dependency-safe deletion of a decommissioned cluster's AWS resources."""

__version__ = "0.3.0"
