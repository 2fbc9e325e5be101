"""Module for file storage backed by a local directory."""

from collections.abc import Iterable
import logging
from pathlib import Path

from cluster_manifests.asset import File
from cluster_manifests.exceptions import ManifestException

from .store import Storage, match_pattern


_LOGGER = logging.getLogger(__name__)


class DirectoryStorage(Storage):
    """Storage implementation that reads and writes files under a root directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the DirectoryStorage."""
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        """The directory all paths are relative to."""
        return self._root

    def write(self, files: Iterable[File]) -> None:
        """Persist the files, creating parent directories as needed."""
        for f in files:
            path = self._root / f.filename
            _LOGGER.debug("Writing file %s", path)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(f.data)
            except OSError as e:
                raise ManifestException(f"Failed to write file {path}: {e}") from e

    def fetch_by_name(self, filename: str) -> File | None:
        """Return the file at the specified path, or None if it does not exist."""
        path = self._root / filename
        if not path.is_file():
            return None
        return File(filename, self._read(path))

    def fetch_by_pattern(self, pattern: str) -> list[File]:
        """Return all files matching the glob pattern."""
        if not self._root.is_dir():
            return []
        result = []
        for path in self._root.glob(pattern):
            if not path.is_file():
                continue
            filename = path.relative_to(self._root).as_posix()
            if not match_pattern(filename, pattern):
                continue
            result.append(File(filename, self._read(path)))
        return result

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise ManifestException(f"Failed to read file {path}: {e}") from e
