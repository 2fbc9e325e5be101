"""Representation of the structured documents written for a cluster.

Documents are dataclasses that serialize to kubernetes style YAML. Keys are
emitted sorted and multi-line strings use literal block style so that output is
stable and diff friendly across runs.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, ClassVar, TypeVar

from mashumaro import DataClassDictMixin, field_options
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from .exceptions import AnchorParseError, InputException, SerializationError

__all__ = [
    "BaseManifest",
    "ObjectMeta",
    "ConfigurationObject",
    "config_map",
    "dump_yaml",
]

_LOGGER = logging.getLogger(__name__)

_M = TypeVar("_M", bound="BaseManifest")


CONFIG_MAP_KIND = "ConfigMap"
CONFIG_MAP_API_VERSION = "v1"


class _ManifestDumper(yaml.SafeDumper):
    """YAML dumper that keeps multi-line strings readable."""


def _str_presenter(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    """Represent multi-line yaml strings as you'd expect.

    See https://github.com/yaml/pyyaml/issues/240
    """
    return dumper.represent_scalar(
        "tag:yaml.org,2002:str", data, style="|" if data.count("\n") > 0 else None
    )


_ManifestDumper.add_representer(str, _str_presenter)


def dump_yaml(doc: Any) -> str:
    """Serialize a document to YAML with sorted keys.

    Raises SerializationError if the document contains values that can't be
    represented.
    """
    try:
        return yaml.dump(
            doc, Dumper=_ManifestDumper, sort_keys=True, default_flow_style=False
        )
    except yaml.YAMLError as err:
        raise SerializationError(f"Unable to serialize document: {err}") from err


def _check_version(doc: dict[str, Any], kind: str, version: str) -> None:
    """Assert that the resource has the specified kind and version."""
    if doc.get("kind") != kind:
        raise InputException(f"Invalid object expected kind '{kind}': {doc}")
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if api_version != version:
        raise InputException(f"Invalid object expected '{version}': {doc}")


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return dump_yaml(self.to_dict())

    @classmethod
    def parse_yaml(cls: type[_M], content: str | bytes) -> _M:
        """Parse the serialized object.

        Raises InputException when the content is not valid YAML or does not
        match the object.
        """
        try:
            return yaml_decode(content, cls)
        except yaml.YAMLError as err:
            raise InputException(f"Invalid YAML for {cls.__name__}: {err}") from err
        except (MissingField, InvalidFieldValue, TypeError, ValueError) as err:
            raise InputException(f"Invalid {cls.__name__}: {err}") from err

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class ObjectMeta(BaseManifest):
    """Metadata identifying a kubernetes object."""

    name: str
    """The name of the object."""

    namespace: str | None = None
    """The namespace of the object."""


@dataclass
class ConfigurationObject(BaseManifest):
    """A ConfigMap holding string values for the cluster.

    The cluster config is written once per install and is used on later runs
    to detect that manifests were already generated.
    """

    kind: ClassVar[str] = CONFIG_MAP_KIND

    metadata: ObjectMeta
    """The identity of the ConfigMap."""

    data: dict[str, str] = field(default_factory=dict)
    """The string values stored in the ConfigMap."""

    api_version: str = field(
        metadata=field_options(alias="apiVersion"), default=CONFIG_MAP_API_VERSION
    )
    """The apiVersion of the object."""

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        if self.metadata.namespace:
            return f"{self.metadata.namespace}/{self.metadata.name}"
        return self.metadata.name

    def to_doc(self) -> dict[str, Any]:
        """Return the kubernetes resource object."""
        doc = self.to_dict()
        doc["kind"] = self.kind
        return doc

    def yaml(self) -> str:
        """Return a YAML string representation of the resource object."""
        return dump_yaml(self.to_doc())

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ConfigurationObject":
        """Parse a ConfigurationObject from a kubernetes resource object."""
        _check_version(doc, CONFIG_MAP_KIND, CONFIG_MAP_API_VERSION)
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls.__name__} missing metadata: {doc}")
        if not isinstance(metadata, dict) or not metadata.get("name"):
            raise InputException(
                f"Invalid {cls.__name__} missing metadata.name: {doc}"
            )
        data = doc.get("data") or {}
        if not isinstance(data, dict) or not all(
            isinstance(value, str) for value in data.values()
        ):
            raise InputException(f"Invalid {cls.__name__} data must be strings: {doc}")
        try:
            return cls.from_dict({key: doc[key] for key in doc if key != "kind"})
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid {cls.__name__}: {err}") from err

    @classmethod
    def parse_yaml(cls, content: str | bytes) -> "ConfigurationObject":
        """Parse a serialized ConfigurationObject.

        Raises AnchorParseError when the content is not a valid ConfigMap.
        """
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise AnchorParseError(f"Invalid YAML in cluster config: {err}") from err
        if not isinstance(doc, dict):
            raise AnchorParseError(f"Invalid cluster config, expected a mapping: {doc!r}")
        try:
            return cls.parse_doc(doc)
        except InputException as err:
            raise AnchorParseError(str(err)) from err


def config_map(namespace: str, name: str, data: dict[str, str]) -> ConfigurationObject:
    """Create a ConfigMap in the namespace holding the data."""
    return ConfigurationObject(
        metadata=ObjectMeta(name=name, namespace=namespace),
        data=dict(data),
    )
