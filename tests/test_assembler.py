"""Tests for assembling the common manifests."""

import base64
import json
from typing import Any

import pytest
import yaml

from cluster_manifests.asset import File
from cluster_manifests.assembler import (
    CLUSTER_CONFIG_PATH,
    Manifests,
    build_template_context,
    etcd_endpoint_hostnames,
)
from cluster_manifests.bootkube import EtcdServiceKubeSystem
from cluster_manifests.exceptions import (
    ResolutionError,
    SerializationError,
    TemplateError,
)
from cluster_manifests.installconfig import ClusterID, InstallConfig, InstallConfigSpec
from cluster_manifests.manifest import ConfigurationObject
from cluster_manifests.resolver import DependencySet, Resolver
from cluster_manifests.store import InMemoryStorage
from cluster_manifests.tls import (
    EtcdCA,
    EtcdClientCertKey,
    KubeCA,
    MCSCertKey,
    RootCA,
    ServiceServingCA,
)

EXPECTED_FILES = [
    "manifests/04-openshift-machine-config-operator.yaml",
    "manifests/09-openshift-service-signer-namespace.yaml",
    "manifests/cluster-config.yaml",
    "manifests/cluster-dns-02-config.yml",
    "manifests/cluster-infrastructure-02-config.yml",
    "manifests/cluster-ingress-02-config.yml",
    "manifests/cluster-network-01-crd.yml",
    "manifests/cluster-network-02-config.yml",
    "manifests/cvo-overrides.yaml",
    "manifests/etcd-service.yaml",
    "manifests/host-etcd-service-endpoints.yaml",
    "manifests/host-etcd-service.yaml",
    "manifests/kube-cloud-config.yaml",
    "manifests/kube-system-configmap-etcd-serving-ca.yaml",
    "manifests/kube-system-configmap-root-ca.yaml",
    "manifests/kube-system-secret-etcd-client.yaml",
    "manifests/machine-config-server-tls-secret.yaml",
    "manifests/openshift-service-signer-secret.yaml",
    "manifests/pull.json",
]


def load_doc(manifests: Manifests, filename: str) -> Any:
    """Return the parsed contents of a manifest."""
    f = manifests.file_set.get(f"manifests/{filename}")
    assert f is not None, f"missing {filename}"
    if filename.endswith(".json"):
        return json.loads(f.data)
    return yaml.safe_load(f.data)


def test_file_names(parents: DependencySet) -> None:
    """Test the manifests are the expected files in sorted order."""
    manifests = parents.get(Manifests)
    assert manifests.file_set.filenames == EXPECTED_FILES
    assert [f.filename for f in manifests.files()] == EXPECTED_FILES


def test_deterministic(parents: DependencySet) -> None:
    """Test generating from the same dependencies produces identical output."""
    first = Manifests()
    first.generate(parents.restrict(first))
    second = Manifests()
    second.generate(parents.restrict(second))
    assert first.file_set == second.file_set
    assert first.file_set == parents.get(Manifests).file_set
    assert first.cluster_config == second.cluster_config


def test_etcd_endpoint_hostnames(parents: DependencySet) -> None:
    """Test one endpoint hostname per control plane replica."""
    context = build_template_context(parents)
    assert list(context.etcd_endpoint_hostnames) == [
        "demo-etcd-0",
        "demo-etcd-1",
        "demo-etcd-2",
    ]
    assert context.etcd_endpoint_dns_suffix == "example.com"
    assert etcd_endpoint_hostnames("x", 1) == ("x-etcd-0",)


def test_template_context_encoding(parents: DependencySet) -> None:
    """Test inline certificates are raw and secret values are base64."""
    context = build_template_context(parents)
    assert context.root_ca_cert == parents.get(RootCA).cert().decode()
    assert context.etcd_ca_cert == parents.get(EtcdCA).cert().decode()
    etcd_client = parents.get(EtcdClientCertKey)
    assert base64.b64decode(context.etcd_client_cert) == etcd_client.cert()
    assert base64.b64decode(context.etcd_client_key) == etcd_client.key()
    assert base64.b64decode(context.kube_ca_cert) == parents.get(KubeCA).cert()
    assert base64.b64decode(context.kube_ca_key) == parents.get(KubeCA).key()
    assert base64.b64decode(context.mcs_tls_cert) == parents.get(MCSCertKey).cert()
    assert (
        base64.b64decode(context.service_serving_ca_key)
        == parents.get(ServiceServingCA).key()
    )
    assert base64.b64decode(context.pull_secret_base64) == b'{"auths": {}}'
    assert context.cvo_cluster_id == parents.get(ClusterID).cluster_id
    assert context.cloud_provider_config_base64 == ""


def test_cluster_config(
    parents: DependencySet, install_config_spec: InstallConfigSpec
) -> None:
    """Test the cluster config embeds the install config."""
    manifests = parents.get(Manifests)
    cluster_config = manifests.cluster_config
    assert cluster_config is not None
    assert cluster_config.namespaced_name == "kube-system/cluster-config-v1"
    install_config = cluster_config.data["install-config"]
    assert install_config == parents.get(InstallConfig).files()[0].text()
    assert InstallConfigSpec.parse_yaml(install_config) == install_config_spec

    f = manifests.file_set.get(CLUSTER_CONFIG_PATH)
    assert f is not None
    assert ConfigurationObject.parse_yaml(f.data) == cluster_config


def test_host_etcd_endpoints(parents: DependencySet) -> None:
    """Test the endpoints list one address per etcd hostname."""
    doc = load_doc(parents.get(Manifests), "host-etcd-service-endpoints.yaml")
    assert doc["metadata"]["annotations"] == {
        "alpha.installer.openshift.io/dns-suffix": "example.com"
    }
    assert doc["subsets"][0]["addresses"] == [
        {"ip": "192.0.2.1", "hostname": "demo-etcd-0"},
        {"ip": "192.0.2.2", "hostname": "demo-etcd-1"},
        {"ip": "192.0.2.3", "hostname": "demo-etcd-2"},
    ]
    assert doc["subsets"][0]["ports"] == [
        {"name": "etcd", "port": 2379, "protocol": "TCP"}
    ]


def test_indented_certificates(parents: DependencySet) -> None:
    """Test certificates embedded in ConfigMaps keep their contents."""
    manifests = parents.get(Manifests)
    root_ca = load_doc(manifests, "kube-system-configmap-root-ca.yaml")
    assert root_ca["data"]["ca.crt"] == parents.get(RootCA).cert().decode()
    etcd_ca = load_doc(manifests, "kube-system-configmap-etcd-serving-ca.yaml")
    assert etcd_ca["data"]["ca-bundle.crt"] == parents.get(EtcdCA).cert().decode()


def test_secrets(parents: DependencySet) -> None:
    """Test secret data decodes to the shared certificate material."""
    manifests = parents.get(Manifests)
    etcd_client = parents.get(EtcdClientCertKey)
    secret = load_doc(manifests, "kube-system-secret-etcd-client.yaml")
    assert base64.b64decode(secret["data"]["tls.crt"]) == etcd_client.cert()
    assert base64.b64decode(secret["data"]["tls.key"]) == etcd_client.key()

    mcs = load_doc(manifests, "machine-config-server-tls-secret.yaml")
    assert base64.b64decode(mcs["data"]["tls.crt"]) == parents.get(MCSCertKey).cert()

    pull = load_doc(manifests, "pull.json")
    assert base64.b64decode(pull["data"][".dockerconfigjson"]) == b'{"auths": {}}'

    cvo = load_doc(manifests, "cvo-overrides.yaml")
    assert cvo["clusterID"] == parents.get(ClusterID).cluster_id


def test_network_manifests(parents: DependencySet) -> None:
    """Test the network assets contribute their files."""
    manifests = parents.get(Manifests)
    assert load_doc(manifests, "cluster-ingress-02-config.yml")["spec"] == {
        "domain": "apps.demo.example.com"
    }
    assert load_doc(manifests, "cluster-dns-02-config.yml")["spec"] == {
        "baseDomain": "demo.example.com"
    }
    infra = load_doc(manifests, "cluster-infrastructure-02-config.yml")
    assert infra["status"]["apiServerURL"] == "https://api.demo.example.com:6443"
    network = load_doc(manifests, "cluster-network-02-config.yml")
    assert network["spec"]["serviceNetwork"] == "172.30.0.0/16"


def test_static_manifests_copied(parents: DependencySet) -> None:
    """Test manifests without templating are copied unchanged."""
    manifests = parents.get(Manifests)
    f = manifests.file_set.get("manifests/etcd-service.yaml")
    assert f is not None
    assert f.data == parents.get(EtcdServiceKubeSystem).data


def test_template_failure(install_config_spec: InstallConfigSpec) -> None:
    """Test a template failure aborts assembly and names the template."""
    storage = InMemoryStorage(
        [File("templates/bootkube/pull.json", b'{"data": "{{ missing_field }}"}')]
    )
    resolver = Resolver(assets=[InstallConfig(install_config_spec)], fetcher=storage)
    with pytest.raises(ResolutionError, match="pull.json") as err:
        resolver.resolve(Manifests)
    assert err.value.asset_name == "Common Manifests"
    assert isinstance(err.value.cause, TemplateError)
    assert err.value.cause.template_name == "pull.json"


def test_template_override(install_config_spec: InstallConfigSpec) -> None:
    """Test a template in storage replaces the built-in one."""
    storage = InMemoryStorage(
        [File("templates/bootkube/cvo-overrides.yaml", b"id: {{ cvo_cluster_id }}\n")]
    )
    resolver = Resolver(assets=[InstallConfig(install_config_spec)], fetcher=storage)
    manifests = resolver.fetch(Manifests)
    cluster_id = resolver.dependency_set.get(ClusterID).cluster_id
    assert load_doc(manifests, "cvo-overrides.yaml") == {"id": cluster_id}


def test_restricted_functions(install_config_spec: InstallConfigSpec) -> None:
    """Test the function table is passed through to the renderer."""
    resolver = Resolver(
        assets=[InstallConfig(install_config_spec), Manifests(functions={})]
    )
    with pytest.raises(ResolutionError) as err:
        resolver.resolve(Manifests)
    assert isinstance(err.value.cause, TemplateError)


def test_serialization_failure(
    install_config_spec: InstallConfigSpec, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a cluster config that can't be serialized aborts assembly."""

    def fail(self: ConfigurationObject) -> str:
        raise SerializationError("boom")

    monkeypatch.setattr(ConfigurationObject, "yaml", fail)
    resolver = Resolver(assets=[InstallConfig(install_config_spec)])
    with pytest.raises(ResolutionError, match="cluster-config-v1") as err:
        resolver.resolve(Manifests)
    assert isinstance(err.value.cause, SerializationError)


def test_load_not_found() -> None:
    """Test loading from empty storage is not an error."""
    manifests = Manifests()
    assert not manifests.load(InMemoryStorage())
    assert manifests.cluster_config is None
    assert len(manifests.file_set) == 0


def test_template_override_function_error(
    install_config_spec: InstallConfigSpec,
) -> None:
    """Test an override calling a function with bad values names the template."""
    storage = InMemoryStorage(
        [File("templates/bootkube/cvo-overrides.yaml", b"id: {{ indent(2, 5) }}\n")]
    )
    resolver = Resolver(assets=[InstallConfig(install_config_spec)], fetcher=storage)
    with pytest.raises(ResolutionError, match="cvo-overrides.yaml") as err:
        resolver.resolve(Manifests)
    assert isinstance(err.value.cause, TemplateError)
    assert err.value.cause.template_name == "cvo-overrides.yaml"
    assert isinstance(err.value.cause.cause, AttributeError)


def test_serialization_failure_keeps_state(
    parents: DependencySet, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a failed generate does not leave a partial cluster config behind."""

    def fail(self: ConfigurationObject) -> str:
        raise SerializationError("boom")

    monkeypatch.setattr(ConfigurationObject, "yaml", fail)
    manifests = Manifests()
    with pytest.raises(SerializationError, match="cluster-config-v1"):
        manifests.generate(parents.restrict(manifests))
    assert manifests.cluster_config is None
    assert len(manifests.file_set) == 0


def test_template_failure_keeps_state(parents: DependencySet) -> None:
    """Test a render failure after the cluster config is built changes nothing."""
    manifests = Manifests(functions={})
    with pytest.raises(TemplateError):
        manifests.generate(parents.restrict(manifests))
    assert manifests.cluster_config is None
    assert len(manifests.file_set) == 0
