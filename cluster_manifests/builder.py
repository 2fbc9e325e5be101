"""Library for generating and reloading the manifests of a cluster.

Example usage:
```
from pathlib import Path

from cluster_manifests import builder
from cluster_manifests.installconfig import InstallConfigSpec
from cluster_manifests.store import DirectoryStorage

storage = DirectoryStorage(Path("/tmp/cluster"))
spec = InstallConfigSpec.parse_yaml(Path("install-config.yaml").read_text())
manifests = builder.ensure_manifests(storage, spec)
for f in manifests.file_set:
    print(f.filename)
```

Generating writes the files of every resolved asset, not just the manifests, so
that a later run reloads the same certificates and cluster id.
"""

import logging

from .assembler import Manifests
from .config import ResolverConfig
from .installconfig import InstallConfig, InstallConfigSpec
from .resolver import Resolver
from .store import FileFetcher, Storage
from .template import TemplateFunctions

__all__ = [
    "ensure_manifests",
    "generate_manifests",
    "load_manifests",
]

_LOGGER = logging.getLogger(__name__)


def generate_manifests(
    storage: Storage,
    install_config: InstallConfigSpec,
    functions: TemplateFunctions | None = None,
    config: ResolverConfig | None = None,
) -> Manifests:
    """Generate the manifests and write them to storage.

    Assets other than the manifests are loaded from storage when present unless
    disabled in the config. Nothing is written if any asset fails.
    """
    resolver = Resolver(
        assets=[InstallConfig(install_config), Manifests(functions=functions)],
        fetcher=storage,
        config=config,
    )
    parents = resolver.resolve(Manifests)
    files = [f for asset in parents.values() for f in asset.files()]
    _LOGGER.info(
        "Writing %d files (%d assets generated, %d loaded)",
        len(files),
        len(resolver.generated),
        len(resolver.loaded),
    )
    storage.write(files)
    return parents.get(Manifests)


def load_manifests(fetcher: FileFetcher) -> Manifests | None:
    """Load manifests written by a previous run, or None if there are none."""
    manifests = Manifests()
    if not manifests.load(fetcher):
        return None
    return manifests


def ensure_manifests(
    storage: Storage,
    install_config: InstallConfigSpec,
    functions: TemplateFunctions | None = None,
) -> Manifests:
    """Return previously generated manifests, generating them if needed."""
    if (manifests := load_manifests(storage)) is not None:
        _LOGGER.info("Found existing manifests, skipping generation")
        return manifests
    return generate_manifests(storage, install_config, functions)
