"""
The store module provides the storage collaborator used to persist and reload
the files produced by assets.

- Paths are relative to the storage root and always use `/` separators.
- Enumeration order is unspecified, callers sort what they read back.

This abstract interface allows for various implementations (in-memory, filesystem, etc.).
"""

from .store import FileFetcher, Storage
from .in_memory import InMemoryStorage
from .directory import DirectoryStorage

__all__ = [
    "FileFetcher",
    "Storage",
    "InMemoryStorage",
    "DirectoryStorage",
]
