"""Assets are the named generation units that make up an install.

An asset declares the other assets it needs up front in `dependencies`. The
resolver fetches those first, then hands them to `generate`. An asset that was
generated on a previous run can instead be reconstructed from storage with
`load`, without calling `generate` again.

Example:
```
class Greeting(Asset):
    name = "Greeting"
    dependencies = (InstallConfig,)

    def generate(self, parents: DependencySet) -> None:
        install_config = parents.get(InstallConfig)
        self.text = f"hello {install_config.spec.metadata.name}"
```
"""

from abc import ABC
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import logging
from typing import ClassVar, TYPE_CHECKING, overload

from .exceptions import DuplicatePathError

if TYPE_CHECKING:
    from .resolver import DependencySet
    from .store import FileFetcher

__all__ = [
    "Asset",
    "File",
    "FileSet",
    "sort_files",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class File:
    """A file produced by an asset, relative to the output root."""

    filename: str
    """The path of the file, using `/` separators."""

    data: bytes
    """The contents of the file."""

    def text(self) -> str:
        """Return the contents of the file decoded as utf-8."""
        return self.data.decode("utf-8")


def sort_files(files: Iterable[File]) -> list[File]:
    """Return the files ordered by filename."""
    return sorted(files, key=lambda f: f.filename)


class FileSet(Sequence[File]):
    """An immutable set of files with unique paths, ordered by path."""

    def __init__(self, files: Iterable[File] = ()) -> None:
        """Initialize FileSet, use `from_files` to build from unsorted input."""
        self._files = tuple(files)

    @classmethod
    def from_files(cls, files: Iterable[File]) -> "FileSet":
        """Build a FileSet, sorting by path and rejecting duplicate paths."""
        ordered = sort_files(files)
        for prev, cur in zip(ordered, ordered[1:]):
            if prev.filename == cur.filename:
                raise DuplicatePathError(cur.filename)
        return cls(ordered)

    @property
    def filenames(self) -> list[str]:
        """Return the paths of all files in order."""
        return [f.filename for f in self._files]

    def get(self, filename: str) -> File | None:
        """Return the file at the specified path if present."""
        for f in self._files:
            if f.filename == filename:
                return f
        return None

    @overload
    def __getitem__(self, index: int) -> File: ...

    @overload
    def __getitem__(self, index: slice) -> "FileSet": ...

    def __getitem__(self, index: int | slice) -> "File | FileSet":
        if isinstance(index, slice):
            return FileSet(self._files[index])
        return self._files[index]

    def __iter__(self) -> Iterator[File]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileSet):
            return NotImplemented
        return self._files == other._files

    def __hash__(self) -> int:
        return hash(self._files)

    def __repr__(self) -> str:
        return f"FileSet({self.filenames!r})"


class Asset(ABC):
    """Base class for a named generation unit."""

    name: ClassVar[str]
    """A human friendly name for the asset."""

    dependencies: ClassVar[tuple[type["Asset"], ...]] = ()
    """Assets that must be resolved before this one is generated."""

    def generate(self, parents: "DependencySet") -> None:
        """Generate the asset from its resolved dependencies."""

    def files(self) -> list[File]:
        """Return the files the asset persists to storage."""
        return []

    def load(self, fetcher: "FileFetcher") -> bool:
        """Reconstruct the asset from storage, returning True when found."""
        return False

    def __str__(self) -> str:
        return self.name
