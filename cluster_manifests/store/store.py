"""Store module for reading and writing asset files."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
import fnmatch

from cluster_manifests.asset import File


def match_pattern(filename: str, pattern: str) -> bool:
    """Return True if the filename matches the glob pattern.

    Wildcards do not match across directory separators, so `manifests/*` only
    matches files directly under `manifests`.
    """
    if filename.count("/") != pattern.count("/"):
        return False
    return all(
        fnmatch.fnmatchcase(part, part_pattern)
        for part, part_pattern in zip(filename.split("/"), pattern.split("/"))
    )


class FileFetcher(ABC):
    """Abstract base class for reading previously persisted files."""

    @abstractmethod
    def fetch_by_name(self, filename: str) -> File | None:
        """Return the file at the specified path, or None if it does not exist."""

    @abstractmethod
    def fetch_by_pattern(self, pattern: str) -> list[File]:
        """Return all files matching the glob pattern.

        No ordering is guaranteed for the returned files.
        """


class Storage(FileFetcher):
    """Abstract base class for storage that can also persist files."""

    @abstractmethod
    def write(self, files: Iterable[File]) -> None:
        """Persist the files, replacing any existing file at the same path."""
