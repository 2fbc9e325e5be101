"""Configuration objects for cluster-manifests."""

from dataclasses import dataclass


@dataclass
class ResolverConfig:
    """Configuration for a Resolver pass."""

    load_existing: bool = True
    """Try to load each asset from storage before generating it."""
