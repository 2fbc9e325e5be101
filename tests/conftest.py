"""Test fixtures for cluster-manifests."""

import pytest

from cluster_manifests.assembler import Manifests
from cluster_manifests.installconfig import (
    InstallConfig,
    InstallConfigSpec,
    MachinePool,
)
from cluster_manifests.manifest import ObjectMeta
from cluster_manifests.resolver import DependencySet, Resolver
from cluster_manifests.store import InMemoryStorage


@pytest.fixture
def install_config_spec() -> InstallConfigSpec:
    """Install config for a cluster with three control plane replicas."""
    return InstallConfigSpec(
        metadata=ObjectMeta(name="demo"),
        base_domain="example.com",
        pull_secret='{"auths": {}}',
        machines=[
            MachinePool(name="master", replicas=3),
            MachinePool(name="worker", replicas=2),
        ],
    )


@pytest.fixture
def resolver(install_config_spec: InstallConfigSpec) -> Resolver:
    """A resolver for a single pass with no storage."""
    return Resolver(assets=[InstallConfig(install_config_spec)])


@pytest.fixture
def parents(resolver: Resolver) -> DependencySet:
    """All assets resolved for the manifests."""
    return resolver.resolve(Manifests)


@pytest.fixture
def storage() -> InMemoryStorage:
    """Empty in-memory storage."""
    return InMemoryStorage()
