"""Assets holding the bootkube manifest templates.

Each asset owns a single file. Templated assets are rendered against the shared
`TemplateContext` by the manifests asset; the rest are copied through
unchanged. The raw template is persisted under `templates/bootkube/` and a file
at that path in storage replaces the built-in template.
"""

import logging
from typing import ClassVar

from .asset import Asset, File
from .resolver import DependencySet
from .store import FileFetcher

__all__ = [
    "TemplateAsset",
    "KubeCloudConfig",
    "MachineConfigServerTLSSecret",
    "OpenshiftServiceCertSignerSecret",
    "Pull",
    "CVOOverrides",
    "HostEtcdServiceEndpointsKubeSystem",
    "KubeSystemConfigmapEtcdServingCA",
    "KubeSystemConfigmapRootCA",
    "KubeSystemSecretEtcdClient",
    "OpenshiftMachineConfigOperator",
    "OpenshiftServiceCertSignerNamespace",
    "EtcdServiceKubeSystem",
    "HostEtcdServiceKubeSystem",
    "TEMPLATED_ASSETS",
    "STATIC_ASSETS",
]

_LOGGER = logging.getLogger(__name__)

TEMPLATE_DIR = "templates/bootkube"


class TemplateAsset(Asset):
    """An asset holding the raw contents of one bootkube manifest."""

    filename: ClassVar[str]
    """The name of the manifest file produced from the template."""

    template: ClassVar[str]
    """The built-in template contents."""

    templated: ClassVar[bool] = True
    """Whether the contents are rendered, or copied through as-is."""

    def __init__(self) -> None:
        self._data = b""

    @property
    def template_path(self) -> str:
        """The path the raw template is persisted at."""
        return f"{TEMPLATE_DIR}/{self.filename}"

    @property
    def data(self) -> bytes:
        """The raw template bytes."""
        return self._data

    def generate(self, parents: DependencySet) -> None:
        self._data = self.template.encode()

    def files(self) -> list[File]:
        return [File(self.template_path, self._data)]

    def load(self, fetcher: FileFetcher) -> bool:
        """Use a template from storage in place of the built-in one."""
        if (f := fetcher.fetch_by_name(self.template_path)) is None:
            return False
        _LOGGER.info("Using template override %s", self.template_path)
        self._data = f.data
        return True


class KubeCloudConfig(TemplateAsset):
    name = "KubeCloudConfig"
    filename = "kube-cloud-config.yaml"
    template = """\
apiVersion: v1
kind: Secret
metadata:
  name: kube-cloud-cfg
  namespace: kube-system
type: Opaque
data:
  config: {{ cloud_provider_config_base64 }}
"""


class MachineConfigServerTLSSecret(TemplateAsset):
    name = "MachineConfigServerTLSSecret"
    filename = "machine-config-server-tls-secret.yaml"
    template = """\
apiVersion: v1
kind: Secret
metadata:
  name: machine-config-server-tls
  namespace: openshift-machine-config-operator
type: Opaque
data:
  tls.crt: {{ mcs_tls_cert }}
  tls.key: {{ mcs_tls_key }}
"""


class OpenshiftServiceCertSignerSecret(TemplateAsset):
    name = "OpenshiftServiceCertSignerSecret"
    filename = "openshift-service-signer-secret.yaml"
    template = """\
apiVersion: v1
kind: Secret
metadata:
  name: service-serving-cert-signer-signing-key
  namespace: openshift-service-cert-signer
type: kubernetes.io/tls
data:
  tls.crt: {{ service_serving_ca_cert }}
  tls.key: {{ service_serving_ca_key }}
"""


class Pull(TemplateAsset):
    name = "Pull"
    filename = "pull.json"
    template = """\
{
  "apiVersion": "v1",
  "kind": "Secret",
  "type": "kubernetes.io/dockerconfigjson",
  "metadata": {
    "namespace": "kube-system",
    "name": "coreos-pull-secret"
  },
  "data": {
    ".dockerconfigjson": "{{ pull_secret_base64 }}"
  }
}
"""


class CVOOverrides(TemplateAsset):
    name = "CVOOverrides"
    filename = "cvo-overrides.yaml"
    template = """\
apiVersion: config.openshift.io/v1
kind: ClusterVersion
metadata:
  namespace: openshift-cluster-version
  name: version
upstream: http://localhost:8080/graph
channel: fast
clusterID: {{ cvo_cluster_id }}
"""


class HostEtcdServiceEndpointsKubeSystem(TemplateAsset):
    name = "HostEtcdServiceEndpointsKubeSystem"
    filename = "host-etcd-service-endpoints.yaml"
    template = """\
apiVersion: v1
kind: Endpoints
metadata:
  name: host-etcd
  namespace: kube-system
  annotations:
    alpha.installer.openshift.io/dns-suffix: {{ etcd_endpoint_dns_suffix }}
subsets:
- addresses:
{%- for hostname in etcd_endpoint_hostnames %}
  - ip: 192.0.2.{{ add(loop.index0, 1) }}
    hostname: {{ hostname }}
{%- endfor %}
  ports:
  - name: etcd
    port: 2379
    protocol: TCP
"""


class KubeSystemConfigmapEtcdServingCA(TemplateAsset):
    name = "KubeSystemConfigmapEtcdServingCA"
    filename = "kube-system-configmap-etcd-serving-ca.yaml"
    template = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: etcd-serving-ca
  namespace: kube-system
data:
  ca-bundle.crt: |
    {{ indent(4, etcd_ca_cert) }}
"""


class KubeSystemConfigmapRootCA(TemplateAsset):
    name = "KubeSystemConfigmapRootCA"
    filename = "kube-system-configmap-root-ca.yaml"
    template = """\
apiVersion: v1
kind: ConfigMap
metadata:
  name: root-ca
  namespace: kube-system
data:
  ca.crt: |
    {{ indent(4, root_ca_cert) }}
"""


class KubeSystemSecretEtcdClient(TemplateAsset):
    name = "KubeSystemSecretEtcdClient"
    filename = "kube-system-secret-etcd-client.yaml"
    template = """\
apiVersion: v1
kind: Secret
metadata:
  name: etcd-client
  namespace: kube-system
type: SecretTypeTLS
data:
  tls.crt: {{ etcd_client_cert }}
  tls.key: {{ etcd_client_key }}
"""


class OpenshiftMachineConfigOperator(TemplateAsset):
    name = "OpenshiftMachineConfigOperator"
    filename = "04-openshift-machine-config-operator.yaml"
    templated = False
    template = """\
apiVersion: v1
kind: Namespace
metadata:
  name: openshift-machine-config-operator
  labels:
    name: openshift-machine-config-operator
    openshift.io/run-level: "1"
"""


class OpenshiftServiceCertSignerNamespace(TemplateAsset):
    name = "OpenshiftServiceCertSignerNamespace"
    filename = "09-openshift-service-signer-namespace.yaml"
    templated = False
    template = """\
apiVersion: v1
kind: Namespace
metadata:
  name: openshift-service-cert-signer
  labels:
    openshift.io/run-level: "1"
"""


class EtcdServiceKubeSystem(TemplateAsset):
    name = "EtcdServiceKubeSystem"
    filename = "etcd-service.yaml"
    templated = False
    template = """\
apiVersion: v1
kind: Service
metadata:
  name: etcd
  namespace: kube-system
  annotations:
    prometheus.io/scrape: "true"
    prometheus.io/scheme: https
  labels:
    k8s-app: etcd
spec:
  selector:
    k8s-app: etcd
  clusterIP: None
  ports:
  - name: etcd
    port: 2379
    protocol: TCP
"""


class HostEtcdServiceKubeSystem(TemplateAsset):
    name = "HostEtcdServiceKubeSystem"
    filename = "host-etcd-service.yaml"
    templated = False
    template = """\
apiVersion: v1
kind: Service
metadata:
  name: host-etcd
  namespace: kube-system
  labels:
    k8s-app: etcd
spec:
  clusterIP: None
  ports:
  - name: etcd
    port: 2379
    protocol: TCP
"""


TEMPLATED_ASSETS: tuple[type[TemplateAsset], ...] = (
    KubeCloudConfig,
    MachineConfigServerTLSSecret,
    OpenshiftServiceCertSignerSecret,
    Pull,
    CVOOverrides,
    HostEtcdServiceEndpointsKubeSystem,
    KubeSystemConfigmapEtcdServingCA,
    KubeSystemConfigmapRootCA,
    KubeSystemSecretEtcdClient,
)

STATIC_ASSETS: tuple[type[TemplateAsset], ...] = (
    OpenshiftMachineConfigOperator,
    OpenshiftServiceCertSignerNamespace,
    EtcdServiceKubeSystem,
    HostEtcdServiceKubeSystem,
)
