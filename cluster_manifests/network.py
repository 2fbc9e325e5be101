"""Assets generating the cluster-wide network, DNS and ingress configuration."""

import logging
from typing import Any, ClassVar

from .asset import Asset, File
from .installconfig import ClusterID, InstallConfig
from .manifest import dump_yaml
from .resolver import DependencySet

__all__ = [
    "DNS",
    "Infrastructure",
    "Ingress",
    "Networking",
]

_LOGGER = logging.getLogger(__name__)

CONFIG_API_VERSION = "config.openshift.io/v1"
CLUSTER_CONFIG_NAME = "cluster"

INGRESS_CONFIG_FILENAME = "cluster-ingress-02-config.yml"
DNS_CONFIG_FILENAME = "cluster-dns-02-config.yml"
INFRASTRUCTURE_CONFIG_FILENAME = "cluster-infrastructure-02-config.yml"
NETWORK_CRD_FILENAME = "cluster-network-01-crd.yml"
NETWORK_CONFIG_FILENAME = "cluster-network-02-config.yml"


def _cluster_config(kind: str, spec: dict[str, Any], **extra: Any) -> dict[str, Any]:
    """Return a cluster scoped config.openshift.io resource object."""
    return {
        "apiVersion": CONFIG_API_VERSION,
        "kind": kind,
        "metadata": {"name": CLUSTER_CONFIG_NAME},
        "spec": spec,
        **extra,
    }


def cluster_domain(install_config: InstallConfig) -> str:
    """Return the fully qualified domain of the cluster."""
    spec = install_config.config
    return f"{spec.cluster_name}.{spec.base_domain}"


class _ConfigAsset(Asset):
    """An asset that generates a fixed set of YAML documents."""

    def __init__(self) -> None:
        self._files: list[File] = []

    def files(self) -> list[File]:
        return list(self._files)

    def _set_docs(self, docs: dict[str, dict[str, Any]]) -> None:
        self._files = [
            File(filename, dump_yaml(doc).encode()) for filename, doc in docs.items()
        ]


class Ingress(_ConfigAsset):
    """The cluster-wide ingress configuration."""

    name: ClassVar[str] = "Ingress Config"
    dependencies = (InstallConfig,)

    def generate(self, parents: DependencySet) -> None:
        domain = cluster_domain(parents.get(InstallConfig))
        self._set_docs(
            {
                INGRESS_CONFIG_FILENAME: _cluster_config(
                    "Ingress", {"domain": f"apps.{domain}"}
                ),
            }
        )


class DNS(_ConfigAsset):
    """The cluster-wide DNS configuration."""

    name: ClassVar[str] = "DNS Config"
    dependencies = (InstallConfig,)

    def generate(self, parents: DependencySet) -> None:
        domain = cluster_domain(parents.get(InstallConfig))
        self._set_docs(
            {DNS_CONFIG_FILENAME: _cluster_config("DNS", {"baseDomain": domain})}
        )


class Infrastructure(_ConfigAsset):
    """The cluster-wide infrastructure configuration."""

    name: ClassVar[str] = "Infrastructure Config"
    dependencies = (ClusterID, InstallConfig)

    def generate(self, parents: DependencySet) -> None:
        install_config = parents.get(InstallConfig)
        cluster_id = parents.get(ClusterID)
        domain = cluster_domain(install_config)
        self._set_docs(
            {
                INFRASTRUCTURE_CONFIG_FILENAME: _cluster_config(
                    "Infrastructure",
                    {},
                    status={
                        "apiServerURL": f"https://api.{domain}:6443",
                        "etcdDiscoveryDomain": domain,
                        "infrastructureName": (
                            f"{install_config.config.cluster_name}-"
                            f"{cluster_id.cluster_id[:8]}"
                        ),
                        "platform": "None",
                    },
                ),
            }
        )


class Networking(_ConfigAsset):
    """The cluster network configuration and its CustomResourceDefinition."""

    name: ClassVar[str] = "Network Config"
    dependencies = (InstallConfig,)

    def generate(self, parents: DependencySet) -> None:
        networking = parents.get(InstallConfig).config.networking
        crd = {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": "networkconfigs.networkoperator.openshift.io"},
            "spec": {
                "group": "networkoperator.openshift.io",
                "names": {
                    "kind": "NetworkConfig",
                    "listKind": "NetworkConfigList",
                    "plural": "networkconfigs",
                    "singular": "networkconfig",
                },
                "scope": "Cluster",
                "versions": [{"name": "v1", "served": True, "storage": True}],
            },
        }
        config = {
            "apiVersion": "networkoperator.openshift.io/v1",
            "kind": "NetworkConfig",
            "metadata": {"name": "default"},
            "spec": {
                "clusterNetworks": [
                    {
                        "cidr": networking.cluster_network_cidr,
                        "hostSubnetLength": networking.host_subnet_length,
                    }
                ],
                "defaultNetwork": {"type": networking.type},
                "serviceNetwork": networking.service_cidr,
            },
        }
        self._set_docs({NETWORK_CRD_FILENAME: crd, NETWORK_CONFIG_FILENAME: config})
