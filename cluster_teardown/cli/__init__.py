"""Command-line interface for cluster-teardown."""
