"""Tests for PhaseScheduler."""

from __future__ import annotations

import pytest

from cluster_teardown.models.resource_type import ResourceType
from cluster_teardown.teardown.scheduler import (
    DEFAULT_PHASES,
    NETWORK_AND_IDENTITY,
    STOP_SERVICES,
    Phase,
    PhaseScheduler,
)
from tests.fixtures.inventories import make_manifest, make_record


class TestPhaseTable:
    """Test suite for phase table validation."""

    def test_default_table_is_valid(self) -> None:
        """Test the built-in table covers every type once and respects dependencies."""
        scheduler = PhaseScheduler()

        listed = [t for phase in scheduler.phases for t in phase.types]
        assert sorted(t.value for t in listed) == sorted(t.value for t in ResourceType)

    def test_table_order_matches_dependency_graph(self) -> None:
        """Test topological order over the table never contradicts it."""
        scheduler = PhaseScheduler()
        order = [t for phase in DEFAULT_PHASES for t in phase.types]

        assert scheduler.graph.violations(order) == []

    def test_missing_type_is_rejected(self) -> None:
        """Test an incomplete table fails at construction."""
        with pytest.raises(ValueError, match="missing"):
            PhaseScheduler(phases=[STOP_SERVICES])

    def test_duplicate_type_is_rejected(self) -> None:
        """Test a type listed twice fails at construction."""
        extra = Phase(name="extra", types=(ResourceType.VPC,))

        with pytest.raises(ValueError, match="more than one phase"):
            PhaseScheduler(phases=[STOP_SERVICES, NETWORK_AND_IDENTITY, extra])

    def test_dependency_violation_is_rejected(self) -> None:
        """Test a table deleting VPCs before subnets fails at construction."""
        network = list(NETWORK_AND_IDENTITY.types)
        network.remove(ResourceType.VPC)
        network.insert(0, ResourceType.VPC)
        broken = Phase(name="network-identity", types=tuple(network))

        with pytest.raises(ValueError, match="dependencies"):
            PhaseScheduler(phases=[STOP_SERVICES, broken])

    def test_phase_of(self) -> None:
        """Test phase lookup by type."""
        scheduler = PhaseScheduler()

        assert scheduler.phase_of(ResourceType.NAT_GATEWAY) is STOP_SERVICES
        assert scheduler.phase_of(ResourceType.SECURITY_GROUP) is NETWORK_AND_IDENTITY


class TestSchedule:
    """Test suite for PhaseScheduler.schedule."""

    def test_resources_grouped_in_table_order(self) -> None:
        """Test types follow the table, records keep manifest order."""
        manifest = make_manifest(
            make_record("vpcs", "vpc-1"),
            make_record("subnets", "subnet-2", "vpc-1"),
            make_record("ec2_instances", "i-001"),
            make_record("subnets", "subnet-1", "vpc-1"),
            make_record("nat_gateways", "nat-1"),
        )

        phases = PhaseScheduler().schedule(manifest)

        assert [p.phase.name for p in phases] == ["stop-services", "network-identity"]
        assert [r.resource_id for r in phases[0].records] == ["i-001", "nat-1"]
        assert [r.resource_id for r in phases[1].records] == ["subnet-2", "subnet-1", "vpc-1"]

    def test_every_type_has_a_group(self) -> None:
        """Test empty groups are kept so callers can hook type positions."""
        phases = PhaseScheduler().schedule(make_manifest(make_record("vpcs", "vpc-1")))

        assert len(phases[0].groups) == len(STOP_SERVICES.types)
        assert phases[0].is_empty
        assert ("security_groups", []) in phases[1].groups

    def test_unknown_types_are_unscheduled(self) -> None:
        """Test unknown types run last in their own group."""
        manifest = make_manifest(make_record("lambda_functions", "fn-1"), make_record("vpcs", "vpc-1"))

        phases = PhaseScheduler().schedule(manifest)

        assert phases[-1].phase.name == "unscheduled"
        assert [r.resource_id for r in phases[-1].records] == ["fn-1"]

    def test_no_unscheduled_group_without_unknown_types(self) -> None:
        """Test the trailing group only appears when needed."""
        phases = PhaseScheduler().schedule(make_manifest(make_record("vpcs", "vpc-1")))

        assert len(phases) == 2
