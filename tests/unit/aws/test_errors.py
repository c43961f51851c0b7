"""Tests for AWS error classification."""

from __future__ import annotations

import pytest

from cluster_teardown.aws.errors import error_code, error_message, is_not_found, is_permission_error
from tests.fixtures.inventories import client_error


class TestErrorClassification:
    """Test suite for not-found and permission error detection."""

    @pytest.mark.parametrize(
        "code",
        [
            "InvalidInstanceID.NotFound",
            "InvalidGroup.NotFound",
            "InvalidVpcID.NotFound",
            "NatGatewayNotFound",
            "DBClusterNotFoundFault",
            "NoSuchEntity",
            "ResourceNotFoundException",
            "RepositoryNotFoundException",
        ],
    )
    def test_not_found_codes(self, code: str) -> None:
        """Test codes meaning the resource is already gone."""
        assert is_not_found(client_error(code)) is True

    def test_validation_error_for_missing_stack(self) -> None:
        """Test CloudFormation reports a missing stack as ValidationError."""
        error = client_error("ValidationError", "Stack with id my-stack does not exist")

        assert is_not_found(error) is True

    def test_other_validation_error_is_not_not_found(self) -> None:
        """Test an ordinary ValidationError is not treated as absence."""
        error = client_error("ValidationError", "Parameter value is invalid")

        assert is_not_found(error) is False

    def test_dependency_violation_is_not_not_found(self) -> None:
        """Test dependency violations are retryable, not absent."""
        error = client_error("DependencyViolation", "resource sg-1 has a dependent object")

        assert is_not_found(error) is False
        assert is_permission_error(error) is False

    @pytest.mark.parametrize("code", ["AccessDenied", "UnauthorizedOperation", "AuthFailure"])
    def test_permission_codes(self, code: str) -> None:
        """Test credential and permission failures."""
        assert is_permission_error(client_error(code)) is True

    def test_code_and_message_extraction(self) -> None:
        """Test code and message helpers."""
        error = client_error("Throttling", "Rate exceeded")

        assert error_code(error) == "Throttling"
        assert error_message(error) == "Rate exceeded"
