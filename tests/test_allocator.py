"""Tests for allocator module."""

import pytest

from portpool.allocator import PortAllocator
from portpool.errors import InvalidInputError, PoolExhaustedError
from portpool.registry import Registry


def test_allocate_lowest_port(make_probe):
    """Test that the first port of the range is picked on an empty pool."""
    allocator = PortAllocator(make_probe())

    assert allocator.allocate(Registry.default(), "frontend") == 3300


def test_allocate_skips_leased_ports(make_probe):
    """Test that ports leased in the pool are skipped."""
    registry = Registry.default()
    registry.add_lease(port=3300, pool="frontend", identifier="a")
    registry.add_lease(port=3301, pool="frontend", identifier="b")

    assert PortAllocator(make_probe()).allocate(registry, "frontend") == 3302


def test_allocate_ignores_leases_in_other_pools(make_probe):
    """Test that only leases recorded in the requested pool count."""
    registry = Registry.default()
    registry.add_pool("overlap", 3300, 3310)
    registry.add_lease(port=3300, pool="overlap", identifier="a")

    assert PortAllocator(make_probe()).allocate(registry, "frontend") == 3300


def test_allocate_skips_system_ports(make_probe):
    """Test that allocator skips ports in use on the host."""
    probe = make_probe({3300, 3301, 3302})

    port = PortAllocator(probe).allocate(Registry.default(), "frontend")

    assert port == 3303
    # Probed in ascending order, one at a time
    assert probe.calls == [3300, 3301, 3302, 3303]


def test_allocate_does_not_probe_leased_ports(make_probe):
    """Test that leased ports are rejected before probing."""
    registry = Registry.default()
    registry.add_lease(port=3300, pool="frontend", identifier="a")
    probe = make_probe()

    PortAllocator(probe).allocate(registry, "frontend")

    assert probe.calls == [3301]


def test_allocate_exhausted_by_leases(make_probe):
    """Test that a fully leased pool raises PoolExhaustedError."""
    registry = Registry.default()
    registry.add_pool("tiny", 7000, 7001)
    registry.add_lease(port=7000, pool="tiny", identifier="a")
    registry.add_lease(port=7001, pool="tiny", identifier="b")

    with pytest.raises(PoolExhaustedError) as excinfo:
        PortAllocator(make_probe()).allocate(registry, "tiny")

    assert excinfo.value.range_start == 7000
    assert excinfo.value.range_end == 7001
    assert "7000-7001" in str(excinfo.value)


def test_allocate_exhausted_by_system(make_probe):
    """Test exhaustion when the host uses every port in the range."""
    registry = Registry.default()
    registry.add_pool("tiny", 7000, 7002)

    with pytest.raises(PoolExhaustedError):
        PortAllocator(make_probe(range(7000, 7003))).allocate(registry, "tiny")


def test_allocate_unknown_pool(make_probe):
    """Test that an unknown pool is invalid input."""
    with pytest.raises(InvalidInputError, match="Available pools: frontend, backend, storybook"):
        PortAllocator(make_probe()).allocate(Registry.default(), "nope")
