"""Assets holding certificate and key material.

Issuing real certificates is the job of the surrounding PKI tooling, which can
supply its material with `from_pem`. When nothing is supplied each asset
generates opaque PEM armored material that records its subject and issuer, so
consumers can still verify that shared authorities were generated once.
"""

import base64
import hashlib
import logging
import secrets
import textwrap
from typing import ClassVar, TypeVar

from .asset import Asset, File
from .exceptions import InputException
from .resolver import DependencySet
from .store import FileFetcher

__all__ = [
    "CertKey",
    "RootCA",
    "EtcdCA",
    "KubeCA",
    "ServiceServingCA",
    "EtcdClientCertKey",
    "MCSCertKey",
    "KubeletCertKey",
    "IngressCertKey",
]

_LOGGER = logging.getLogger(__name__)

TLS_DIR = "tls"
KEY_SIZE = 64

_C = TypeVar("_C", bound="CertKey")


def _pem(label: str, body: bytes) -> bytes:
    encoded = base64.b64encode(body).decode()
    lines = "\n".join(textwrap.wrap(encoded, 64))
    return f"-----BEGIN {label}-----\n{lines}\n-----END {label}-----\n".encode()


class CertKey(Asset):
    """Base class for an asset holding a certificate and its private key."""

    subject: ClassVar[str]
    """The common name of the certificate."""

    file_stem: ClassVar[str]
    """The base name of the persisted files under the tls directory."""

    signer: ClassVar[type["CertKey"] | None] = None
    """The authority that signs the certificate, None for self-signed."""

    def __init__(self) -> None:
        """Initialize CertKey with no material."""
        self._cert = b""
        self._key = b""

    @classmethod
    def from_pem(cls: type[_C], cert: bytes, key: bytes) -> _C:
        """Create the asset from externally issued material."""
        if not cert or not key:
            raise InputException(f"{cls.name} requires both a certificate and key")
        instance = cls()
        instance._cert = cert
        instance._key = key
        return instance

    @property
    def cert_filename(self) -> str:
        return f"{TLS_DIR}/{self.file_stem}.crt"

    @property
    def key_filename(self) -> str:
        return f"{TLS_DIR}/{self.file_stem}.key"

    def cert(self) -> bytes:
        """Return the PEM encoded certificate."""
        return self._cert

    def key(self) -> bytes:
        """Return the PEM encoded private key."""
        return self._key

    def generate(self, parents: DependencySet) -> None:
        """Generate material unless it was supplied."""
        if self._cert and self._key:
            _LOGGER.debug("Using supplied material for %s", self.name)
            return
        issuer = self.subject
        if self.signer is not None:
            issuer = parents.get(self.signer).subject_fingerprint()
        key = secrets.token_bytes(KEY_SIZE)
        self._key = _pem("PRIVATE KEY", key)
        body = "\n".join(
            [
                f"subject={self.subject}",
                f"issuer={issuer}",
                f"key-sha256={hashlib.sha256(key).hexdigest()}",
            ]
        )
        self._cert = _pem("CERTIFICATE", body.encode())

    def subject_fingerprint(self) -> str:
        """Return an identifier unique to this certificate."""
        return f"{self.subject}@{hashlib.sha256(self._cert).hexdigest()[:16]}"

    def files(self) -> list[File]:
        """Return the certificate and key files."""
        if not self._cert:
            return []
        return [
            File(self.cert_filename, self._cert),
            File(self.key_filename, self._key),
        ]

    def load(self, fetcher: FileFetcher) -> bool:
        """Load the certificate and key written by a previous run."""
        cert = fetcher.fetch_by_name(self.cert_filename)
        key = fetcher.fetch_by_name(self.key_filename)
        if cert is None and key is None:
            return False
        if cert is None or key is None:
            raise InputException(
                f"Found only one of {self.cert_filename} and {self.key_filename}"
            )
        self._cert, self._key = cert.data, key.data
        return True


class RootCA(CertKey):
    """The self-signed authority at the top of the chain."""

    name = "Root CA"
    subject = "root-ca"
    file_stem = "root-ca"


class EtcdCA(CertKey):
    """The authority for etcd serving and client certificates."""

    name = "Certificate (etcd)"
    subject = "etcd"
    file_stem = "etcd-client-ca"
    signer = RootCA
    dependencies = (RootCA,)


class KubeCA(CertKey):
    """The authority for kubernetes components."""

    name = "Certificate (kube-ca)"
    subject = "kube-ca"
    file_stem = "kube-ca"
    signer = RootCA
    dependencies = (RootCA,)


class ServiceServingCA(CertKey):
    """The authority the service signer uses for serving certificates."""

    name = "Certificate (service-serving)"
    subject = "service-serving"
    file_stem = "service-serving-ca"
    signer = RootCA
    dependencies = (RootCA,)


class EtcdClientCertKey(CertKey):
    """The client certificate used to talk to etcd."""

    name = "Certificate (etcd-client)"
    subject = "etcd"
    file_stem = "etcd-client"
    signer = EtcdCA
    dependencies = (EtcdCA,)


class MCSCertKey(CertKey):
    """The serving certificate of the machine config server."""

    name = "Certificate (mcs)"
    subject = "system:machine-config-server"
    file_stem = "machine-config-server"
    signer = RootCA
    dependencies = (RootCA,)


class KubeletCertKey(CertKey):
    """The bootstrap kubelet client certificate."""

    name = "Certificate (kubelet)"
    subject = "system:serviceaccount:kube-system:default"
    file_stem = "kubelet"
    signer = KubeCA
    dependencies = (KubeCA,)


class IngressCertKey(CertKey):
    """The default ingress serving certificate."""

    name = "Certificate (ingress)"
    subject = "ingress"
    file_stem = "ingress"
    signer = KubeCA
    dependencies = (KubeCA,)
