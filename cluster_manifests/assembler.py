"""Asset that assembles the common manifests for a cluster.

The manifests are a flat set of files under `manifests/`:

- `cluster-config.yaml` holds a ConfigMap embedding the install config. It is
  always present, and on later runs is used to tell that generation already
  happened.
- The bootkube templates, rendered against a single `TemplateContext` built
  from the resolved certificates, cluster id and install config.
- The static bootkube manifests, copied as-is.
- The files of the ingress, DNS, infrastructure and network assets.

The files are always sorted by path, whether generated or loaded.
"""

import base64
import logging
from typing import ClassVar

from .asset import Asset, File, FileSet
from .bootkube import STATIC_ASSETS, TEMPLATED_ASSETS, TemplateAsset
from .exceptions import SerializationError
from .installconfig import ClusterID, InstallConfig
from .manifest import ConfigurationObject, config_map
from .network import DNS, Infrastructure, Ingress, Networking
from .resolver import DependencySet
from .store import FileFetcher
from .template import TemplateContext, TemplateFunctions, default_functions, render
from .tls import (
    EtcdCA,
    EtcdClientCertKey,
    IngressCertKey,
    KubeCA,
    KubeletCertKey,
    MCSCertKey,
    RootCA,
    ServiceServingCA,
)

__all__ = [
    "Manifests",
    "build_template_context",
    "etcd_endpoint_hostnames",
]

_LOGGER = logging.getLogger(__name__)

MANIFEST_DIR = "manifests"
CLUSTER_CONFIG_FILENAME = "cluster-config.yaml"
CLUSTER_CONFIG_PATH = f"{MANIFEST_DIR}/{CLUSTER_CONFIG_FILENAME}"
CLUSTER_CONFIG_NAMESPACE = "kube-system"
CLUSTER_CONFIG_NAME = "cluster-config-v1"
INSTALL_CONFIG_KEY = "install-config"


def _b64(data: bytes) -> str:
    return base64.standard_b64encode(data).decode()


def etcd_endpoint_hostnames(cluster_name: str, master_count: int) -> tuple[str, ...]:
    """Return the etcd hostname of each control plane replica."""
    return tuple(f"{cluster_name}-etcd-{i}" for i in range(master_count))


def build_template_context(parents: DependencySet) -> TemplateContext:
    """Build the values available to the bootkube templates."""
    install_config = parents.get(InstallConfig).config
    etcd_client = parents.get(EtcdClientCertKey)
    kube_ca = parents.get(KubeCA)
    mcs = parents.get(MCSCertKey)
    service_serving_ca = parents.get(ServiceServingCA)
    return TemplateContext(
        etcd_ca_cert=parents.get(EtcdCA).cert().decode(),
        etcd_client_cert=_b64(etcd_client.cert()),
        etcd_client_key=_b64(etcd_client.key()),
        kube_ca_cert=_b64(kube_ca.cert()),
        kube_ca_key=_b64(kube_ca.key()),
        mcs_tls_cert=_b64(mcs.cert()),
        mcs_tls_key=_b64(mcs.key()),
        pull_secret_base64=_b64(install_config.pull_secret.encode()),
        root_ca_cert=parents.get(RootCA).cert().decode(),
        service_serving_ca_cert=_b64(service_serving_ca.cert()),
        service_serving_ca_key=_b64(service_serving_ca.key()),
        cvo_cluster_id=parents.get(ClusterID).cluster_id,
        etcd_endpoint_hostnames=etcd_endpoint_hostnames(
            install_config.cluster_name, install_config.master_count
        ),
        etcd_endpoint_dns_suffix=install_config.base_domain,
    )


class Manifests(Asset):
    """Generates the dependent operator config files."""

    name: ClassVar[str] = "Common Manifests"
    dependencies = (
        ClusterID,
        InstallConfig,
        Ingress,
        DNS,
        Infrastructure,
        Networking,
        RootCA,
        EtcdCA,
        IngressCertKey,
        KubeCA,
        ServiceServingCA,
        EtcdClientCertKey,
        MCSCertKey,
        KubeletCertKey,
        *TEMPLATED_ASSETS,
        *STATIC_ASSETS,
    )

    def __init__(self, functions: TemplateFunctions | None = None) -> None:
        """Initialize Manifests.

        Args:
            functions: The function table available to templates, the default
                `indent` and `add` table when not specified.
        """
        self.functions = dict(functions) if functions is not None else default_functions()
        self.cluster_config: ConfigurationObject | None = None
        self.file_set = FileSet()

    def generate(self, parents: DependencySet) -> None:
        """Generate the manifests from the resolved dependencies."""
        install_config = parents.get(InstallConfig)
        install_config_data = install_config.files()[0].data.decode()
        cluster_config = config_map(
            CLUSTER_CONFIG_NAMESPACE,
            CLUSTER_CONFIG_NAME,
            {INSTALL_CONFIG_KEY: install_config_data},
        )
        try:
            cluster_config_data = cluster_config.yaml().encode()
        except SerializationError as err:
            raise SerializationError(
                f"Failed to create {CLUSTER_CONFIG_NAMESPACE}/{CLUSTER_CONFIG_NAME} configmap: {err}"
            ) from err

        files = [File(CLUSTER_CONFIG_PATH, cluster_config_data)]
        files.extend(self._bootkube_files(parents))
        for asset_cls in (Ingress, DNS, Networking, Infrastructure):
            files.extend(
                File(f"{MANIFEST_DIR}/{f.filename}", f.data)
                for f in parents.get(asset_cls).files()
            )
        # Only replace state once every file was produced.
        self.file_set = FileSet.from_files(files)
        self.cluster_config = cluster_config
        _LOGGER.info("Generated %d manifests", len(self.file_set))

    def _bootkube_files(self, parents: DependencySet) -> list[File]:
        context = build_template_context(parents).as_dict()
        files = []
        for asset_cls in TEMPLATED_ASSETS + STATIC_ASSETS:
            asset: TemplateAsset = parents.get(asset_cls)
            data = asset.data
            if asset.templated:
                data = render(asset.filename, data, context, self.functions)
            files.append(File(f"{MANIFEST_DIR}/{asset.filename}", data))
        return files

    def files(self) -> list[File]:
        """Return the files generated by the asset."""
        return list(self.file_set)

    def load(self, fetcher: FileFetcher) -> bool:
        """Load the manifests written by a previous run.

        Returns False when there are no manifests, or when the cluster config
        is missing from a partial run. Raises AnchorParseError if the cluster
        config can't be parsed.
        """
        file_list = fetcher.fetch_by_pattern(f"{MANIFEST_DIR}/*")
        if not file_list:
            return False

        cluster_config: ConfigurationObject | None = None
        for f in file_list:
            if f.filename == CLUSTER_CONFIG_PATH:
                cluster_config = ConfigurationObject.parse_yaml(f.data)

        if cluster_config is None:
            _LOGGER.info(
                "Found %d manifests without %s, regenerating",
                len(file_list),
                CLUSTER_CONFIG_PATH,
            )
            return False

        self.file_set = FileSet.from_files(file_list)
        self.cluster_config = cluster_config
        return True
