"""Assets holding the install-time configuration of a cluster."""

from dataclasses import dataclass, field
import logging
from typing import ClassVar
import uuid

from mashumaro import field_options

from .asset import Asset, File
from .exceptions import InputException
from .manifest import BaseManifest, ObjectMeta
from .resolver import DependencySet
from .store import FileFetcher

__all__ = [
    "ClusterID",
    "InstallConfig",
    "InstallConfigSpec",
    "MachinePool",
    "NetworkingSpec",
]

_LOGGER = logging.getLogger(__name__)

INSTALL_CONFIG_FILENAME = "install-config.yaml"
CLUSTER_ID_FILENAME = "cluster-id.yaml"
MASTER_POOL_NAME = "master"


@dataclass
class MachinePool(BaseManifest):
    """A named group of machines."""

    name: str
    """The name of the pool, e.g. master or worker."""

    replicas: int | None = None
    """The number of machines in the pool."""


@dataclass
class NetworkingSpec(BaseManifest):
    """Cluster network address ranges."""

    type: str = "OpenshiftSDN"
    """The network plugin to install."""

    service_cidr: str = field(
        metadata=field_options(alias="serviceCIDR"), default="172.30.0.0/16"
    )
    """The address range for services."""

    cluster_network_cidr: str = field(
        metadata=field_options(alias="clusterNetworkCIDR"), default="10.128.0.0/14"
    )
    """The address range for pods."""

    host_subnet_length: int = field(
        metadata=field_options(alias="hostSubnetLength"), default=9
    )
    """The number of bits of pod address space allocated to each node."""


@dataclass
class InstallConfigSpec(BaseManifest):
    """The configuration provided by the user for an install."""

    metadata: ObjectMeta
    """The cluster name is stored as the metadata name."""

    base_domain: str = field(metadata=field_options(alias="baseDomain"))
    """The base domain of the cluster, e.g. example.com."""

    pull_secret: str = field(metadata=field_options(alias="pullSecret"))
    """The secret used to pull images."""

    machines: list[MachinePool] = field(default_factory=list)
    """The machine pools for the cluster."""

    networking: NetworkingSpec = field(default_factory=NetworkingSpec)
    """The network configuration for the cluster."""

    @property
    def cluster_name(self) -> str:
        """Return the name of the cluster."""
        return self.metadata.name

    @property
    def master_count(self) -> int:
        """Return the number of control plane machines, defaulting to one."""
        for pool in self.machines:
            if pool.name == MASTER_POOL_NAME and pool.replicas is not None:
                return pool.replicas
        return 1


class InstallConfig(Asset):
    """The install config supplied by the user."""

    name: ClassVar[str] = "Install Config"

    def __init__(self, spec: InstallConfigSpec | None = None) -> None:
        """Initialize InstallConfig with an optional user supplied spec."""
        self.spec = spec
        self.file: File | None = None

    @property
    def config(self) -> InstallConfigSpec:
        """Return the spec, which must have been supplied or loaded."""
        if self.spec is None:
            raise InputException("Install config has not been provided")
        return self.spec

    def generate(self, parents: DependencySet) -> None:
        """Validate the supplied spec and serialize it."""
        spec = self.config
        if not spec.cluster_name:
            raise InputException("Install config is missing metadata.name")
        if not spec.base_domain:
            raise InputException("Install config is missing baseDomain")
        if spec.master_count < 1:
            raise InputException(
                f"Install config must have at least one master, got {spec.master_count}"
            )
        self.file = File(INSTALL_CONFIG_FILENAME, spec.yaml().encode())

    def files(self) -> list[File]:
        """Return the serialized install config."""
        return [self.file] if self.file else []

    def load(self, fetcher: FileFetcher) -> bool:
        """Load the install config written by a previous run."""
        if (f := fetcher.fetch_by_name(INSTALL_CONFIG_FILENAME)) is None:
            return False
        self.spec = InstallConfigSpec.parse_yaml(f.data)
        self.file = f
        return True


@dataclass
class _ClusterIDDoc(BaseManifest):
    cluster_id: str = field(metadata=field_options(alias="clusterID"))


class ClusterID(Asset):
    """A unique identifier for the cluster."""

    name: ClassVar[str] = "Cluster ID"

    def __init__(self, cluster_id: str | None = None) -> None:
        """Initialize ClusterID, optionally with a fixed identifier."""
        self.cluster_id = cluster_id or ""

    def generate(self, parents: DependencySet) -> None:
        """Generate a random identifier unless one was supplied."""
        if not self.cluster_id:
            self.cluster_id = str(uuid.uuid4())
        _LOGGER.debug("Using cluster id %s", self.cluster_id)

    def files(self) -> list[File]:
        """Return the persisted identifier."""
        doc = _ClusterIDDoc(cluster_id=self.cluster_id)
        return [File(CLUSTER_ID_FILENAME, doc.yaml().encode())]

    def load(self, fetcher: FileFetcher) -> bool:
        """Load the identifier written by a previous run."""
        if (f := fetcher.fetch_by_name(CLUSTER_ID_FILENAME)) is None:
            return False
        self.cluster_id = _ClusterIDDoc.parse_yaml(f.data).cluster_id
        return True
