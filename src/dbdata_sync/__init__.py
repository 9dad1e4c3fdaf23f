"""Sync compressed database seed artifacts from Nexus into a local data folder."""

from .config import NexusConfig, SyncConfig, build_config, load_config
from .schemas import ManifestEntry, SyncStatus

__all__ = [
    "ManifestEntry",
    "NexusConfig",
    "SyncConfig",
    "SyncStatus",
    "build_config",
    "load_config",
]
