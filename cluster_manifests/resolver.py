"""Library for resolving assets and their dependencies.

Each asset declares its direct dependencies statically. The resolver turns those
declarations into a `DependencyGraph`, rejects cycles before anything is
generated, then fetches every asset exactly once in dependency-first order.
Fetched instances are memoized in a `DependencySet` so that every consumer of an
asset (e.g. two certificates signed by the same authority) observes the same
instance.

Example usage:
```
from cluster_manifests.resolver import Resolver

resolver = Resolver(assets=[InstallConfig(spec)])
parents = resolver.resolve(Manifests)
manifests = parents.get(Manifests)
```

A resolver represents a single pass and is not safe to share across threads.
"""

from collections.abc import Iterable, Iterator, Mapping
import logging
from typing import TypeVar

from .asset import Asset
from .config import ResolverConfig
from .context import trace_context
from .exceptions import CyclicDependencyError, ResolutionError
from .store import FileFetcher

__all__ = [
    "DependencyGraph",
    "DependencySet",
    "Resolver",
]

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T", bound=Asset)

AssetType = type[Asset]

_VISITING = 1
_DONE = 2


class DependencyGraph:
    """Adjacency list of assets keyed by asset class."""

    def __init__(self, edges: Mapping[AssetType, tuple[AssetType, ...]]) -> None:
        """Initialize DependencyGraph, use `build` to walk declarations."""
        self._edges = dict(edges)

    @classmethod
    def build(cls, roots: Iterable[AssetType]) -> "DependencyGraph":
        """Walk the declared dependencies of the roots into a graph.

        Raises CyclicDependencyError if the declarations contain a cycle.
        """
        edges: dict[AssetType, tuple[AssetType, ...]] = {}
        pending = list(roots)
        while pending:
            asset_cls = pending.pop()
            if asset_cls in edges:
                continue
            edges[asset_cls] = tuple(asset_cls.dependencies)
            pending.extend(edges[asset_cls])
        graph = cls(edges)
        graph.check_acyclic()
        return graph

    @property
    def edges(self) -> dict[AssetType, tuple[AssetType, ...]]:
        """Return a copy of the adjacency list."""
        return dict(self._edges)

    def dependencies(self, asset_cls: AssetType) -> tuple[AssetType, ...]:
        """Return the direct dependencies of an asset in the graph."""
        return self._edges[asset_cls]

    def __contains__(self, asset_cls: object) -> bool:
        return asset_cls in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def check_acyclic(self) -> None:
        """Raise CyclicDependencyError naming the first cycle found."""
        self._walk(self._edges)

    def topological_order(self, roots: Iterable[AssetType] | None = None) -> list[AssetType]:
        """Return assets reachable from the roots, dependencies first.

        The order is stable for a given declaration order. All assets in the
        graph are returned when no roots are specified.
        """
        return self._walk(self._edges if roots is None else roots)

    def _walk(self, roots: Iterable[AssetType]) -> list[AssetType]:
        state: dict[AssetType, int] = {}
        order: list[AssetType] = []
        for root in roots:
            if root in state:
                continue
            # Iterative depth first search so that deep graphs don't hit the
            # recursion limit. The path doubles as the current stack.
            path: list[AssetType] = [root]
            children: list[Iterator[AssetType]] = [iter(self._edges.get(root, ()))]
            state[root] = _VISITING
            while path:
                child = next(children[-1], None)
                if child is None:
                    done = path.pop()
                    children.pop()
                    state[done] = _DONE
                    order.append(done)
                    continue
                if (child_state := state.get(child)) == _DONE:
                    continue
                if child_state == _VISITING:
                    cycle = path[path.index(child) :] + [child]
                    raise CyclicDependencyError([c.name for c in cycle])
                state[child] = _VISITING
                path.append(child)
                children.append(iter(self._edges.get(child, ())))
        return order


class DependencySet(Mapping[AssetType, Asset]):
    """Memoized mapping from asset class to its resolved instance."""

    def __init__(
        self,
        instances: dict[AssetType, Asset] | None = None,
        owner: str | None = None,
        allowed: frozenset[AssetType] | None = None,
    ) -> None:
        """Initialize DependencySet.

        A view restricted to `allowed` shares instances with the set it was
        created from.
        """
        self._instances = instances if instances is not None else {}
        self._owner = owner
        self._allowed = allowed

    def get(self, asset_cls: type[T]) -> T:  # type: ignore[override]
        """Return the resolved instance of the asset class.

        Raises ResolutionError when the asset was not declared as a dependency
        or has not been resolved.
        """
        if self._allowed is not None and asset_cls not in self._allowed:
            raise ResolutionError(
                asset_cls.name,
                f"not a declared dependency of {self._owner}",
            )
        if (instance := self._instances.get(asset_cls)) is None:
            raise ResolutionError(asset_cls.name, "asset has not been resolved")
        if not isinstance(instance, asset_cls):
            raise ResolutionError(
                asset_cls.name,
                f"resolved instance has type {instance.__class__.__name__}",
            )
        return instance

    def restrict(self, owner: Asset) -> "DependencySet":
        """Return a view that only exposes the declared dependencies of owner."""
        return DependencySet(
            self._instances,
            owner=owner.name,
            allowed=frozenset(owner.dependencies),
        )

    def _visible(self) -> list[AssetType]:
        return [
            asset_cls
            for asset_cls in self._instances
            if self._allowed is None or asset_cls in self._allowed
        ]

    def __getitem__(self, asset_cls: AssetType) -> Asset:
        if self._allowed is not None and asset_cls not in self._allowed:
            raise KeyError(asset_cls)
        return self._instances[asset_cls]

    def __iter__(self) -> Iterator[AssetType]:
        return iter(self._visible())

    def __len__(self) -> int:
        return len(self._visible())


class Resolver:
    """Fetches assets once per pass, loading or generating each in turn."""

    def __init__(
        self,
        assets: Iterable[Asset] = (),
        fetcher: FileFetcher | None = None,
        config: ResolverConfig | None = None,
    ) -> None:
        """Initialize Resolver.

        Args:
            assets: Pre-constructed instances to use in place of default
                construction for their class. They are always generated and
                never loaded from storage.
            fetcher: Storage to load previously generated assets from.
            config: Resolver configuration.
        """
        self._supplied: dict[AssetType, Asset] = {}
        for asset in assets:
            if type(asset) in self._supplied:
                raise ValueError(f"Asset {asset.name} was supplied more than once")
            self._supplied[type(asset)] = asset
        self._fetcher = fetcher
        self._config = config or ResolverConfig()
        self._resolved: dict[AssetType, Asset] = {}
        self._generated: set[AssetType] = set()
        self._loaded: set[AssetType] = set()

    @property
    def dependency_set(self) -> DependencySet:
        """Return all assets resolved so far in this pass."""
        return DependencySet(self._resolved)

    @property
    def generated(self) -> set[AssetType]:
        """Assets generated during this pass."""
        return set(self._generated)

    @property
    def loaded(self) -> set[AssetType]:
        """Assets reconstructed from storage during this pass."""
        return set(self._loaded)

    def resolve(self, *asset_classes: AssetType) -> DependencySet:
        """Resolve the requested assets and all of their dependencies.

        Raises CyclicDependencyError before anything is generated if the
        declarations contain a cycle, and ResolutionError if any asset fails to
        load or generate.
        """
        graph = DependencyGraph.build(asset_classes)
        for asset_cls in graph.topological_order(asset_classes):
            self._fetch(asset_cls)
        return self.dependency_set

    def fetch(self, asset_cls: type[T]) -> T:
        """Resolve a single asset and return its instance."""
        return self.resolve(asset_cls).get(asset_cls)

    def _fetch(self, asset_cls: AssetType) -> Asset:
        if (existing := self._resolved.get(asset_cls)) is not None:
            return existing
        with trace_context(asset_cls.name):
            asset = self._supplied.get(asset_cls)
            if asset is None:
                asset = asset_cls()
                if self._try_load(asset):
                    self._resolved[asset_cls] = asset
                    self._loaded.add(asset_cls)
                    return asset
            parents = DependencySet(self._resolved).restrict(asset)
            _LOGGER.debug("Generating %s", asset.name)
            try:
                asset.generate(parents)
            except Exception as err:
                raise ResolutionError(asset.name, err) from err
            self._resolved[asset_cls] = asset
            self._generated.add(asset_cls)
            return asset

    def _try_load(self, asset: Asset) -> bool:
        if self._fetcher is None or not self._config.load_existing:
            return False
        try:
            found = asset.load(self._fetcher)
        except Exception as err:
            raise ResolutionError(asset.name, err) from err
        if found:
            _LOGGER.debug("Loaded %s from storage", asset.name)
        return found
