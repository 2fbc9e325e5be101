"""Module for in memory file storage."""

from collections.abc import Iterable
import logging

from cluster_manifests.asset import File

from .store import Storage, match_pattern


_LOGGER = logging.getLogger(__name__)


class InMemoryStorage(Storage):
    """In-memory implementation of the Storage interface.

    Files are returned from `fetch_by_pattern` in the order they were first
    written.
    """

    def __init__(self, files: Iterable[File] = ()) -> None:
        """Initialize the InMemoryStorage."""
        self._files: dict[str, bytes] = {}
        self.write(files)

    def write(self, files: Iterable[File]) -> None:
        """Persist the files, replacing any existing file at the same path."""
        for f in files:
            _LOGGER.debug("Writing file %s (%d bytes)", f.filename, len(f.data))
            self._files[f.filename] = f.data

    def fetch_by_name(self, filename: str) -> File | None:
        """Return the file at the specified path, or None if it does not exist."""
        if (data := self._files.get(filename)) is None:
            return None
        return File(filename, data)

    def fetch_by_pattern(self, pattern: str) -> list[File]:
        """Return all files matching the glob pattern."""
        return [
            File(filename, data)
            for filename, data in self._files.items()
            if match_pattern(filename, pattern)
        ]

    def delete(self, filename: str) -> None:
        """Remove the file at the specified path if present."""
        self._files.pop(filename, None)

    @property
    def filenames(self) -> list[str]:
        """Return the paths of all stored files."""
        return list(self._files)
