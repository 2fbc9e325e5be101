import pytest

from cluster_manifests.asset import File
from cluster_manifests.store import InMemoryStorage
from cluster_manifests.store.store import match_pattern


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage(
        [
            File("manifests/b.yaml", b"b"),
            File("manifests/a.yaml", b"a"),
            File("manifests/nested/c.yaml", b"c"),
            File("tls/root-ca.crt", b"cert"),
        ]
    )


@pytest.mark.parametrize(
    ("filename", "pattern", "expected"),
    [
        ("manifests/a.yaml", "manifests/*", True),
        ("manifests/a.yaml", "manifests/*.yaml", True),
        ("manifests/a.json", "manifests/*.yaml", False),
        ("manifests/nested/c.yaml", "manifests/*", False),
        ("manifests/nested/c.yaml", "manifests/*/*", True),
        ("manifests", "manifests/*", False),
        ("tls/root-ca.crt", "manifests/*", False),
        ("cluster-id.yaml", "*.yaml", True),
        ("Manifests/a.yaml", "manifests/*", False),
    ],
)
def test_match_pattern(filename: str, pattern: str, expected: bool) -> None:
    """Test wildcards match within a single path segment."""
    assert match_pattern(filename, pattern) == expected


def test_fetch_by_name(storage: InMemoryStorage) -> None:
    """Test fetching a single file."""
    assert storage.fetch_by_name("tls/root-ca.crt") == File("tls/root-ca.crt", b"cert")
    assert storage.fetch_by_name("tls/missing.crt") is None


def test_fetch_by_pattern(storage: InMemoryStorage) -> None:
    """Test fetching files in insertion order."""
    assert [f.filename for f in storage.fetch_by_pattern("manifests/*")] == [
        "manifests/b.yaml",
        "manifests/a.yaml",
    ]
    assert storage.fetch_by_pattern("missing/*") == []


def test_write_replaces(storage: InMemoryStorage) -> None:
    """Test writing a path again replaces the contents."""
    storage.write([File("manifests/a.yaml", b"updated")])
    assert storage.fetch_by_name("manifests/a.yaml") == File(
        "manifests/a.yaml", b"updated"
    )
    assert len(storage.filenames) == 4


def test_delete(storage: InMemoryStorage) -> None:
    """Test deleting files."""
    storage.delete("manifests/a.yaml")
    storage.delete("manifests/unknown.yaml")
    assert storage.filenames == [
        "manifests/b.yaml",
        "manifests/nested/c.yaml",
        "tls/root-ca.crt",
    ]
