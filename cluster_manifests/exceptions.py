"""Exceptions related to cluster-manifests."""

__all__ = [
    "ManifestException",
    "InputException",
    "ResolutionError",
    "CyclicDependencyError",
    "TemplateError",
    "SerializationError",
    "AnchorParseError",
    "DuplicatePathError",
]


class ManifestException(Exception):
    """Generic base exception used for this library."""


class InputException(ManifestException):
    """Raised when the input files or values are not formatted as expected."""


class ResolutionError(ManifestException):
    """Raised when an asset could not be fetched during a resolution pass."""

    def __init__(self, asset_name: str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to fetch {asset_name}: {cause}")
        self.asset_name = asset_name
        self.cause = cause


class CyclicDependencyError(ManifestException):
    """Raised when the declared asset dependencies contain a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")
        self.cycle = cycle


class TemplateError(ManifestException):
    """Raised when a template fails to parse or execute."""

    def __init__(self, template_name: str, cause: BaseException) -> None:
        super().__init__(f"Failed to render template {template_name}: {cause}")
        self.template_name = template_name
        self.cause = cause


class SerializationError(ManifestException):
    """Raised when a structured document cannot be encoded."""


class AnchorParseError(InputException):
    """Raised when the persisted cluster config cannot be decoded."""


class DuplicatePathError(ManifestException):
    """Raised when two files in one file set share a path."""

    def __init__(self, filename: str) -> None:
        super().__init__(f"Duplicate file path in file set: {filename}")
        self.filename = filename
