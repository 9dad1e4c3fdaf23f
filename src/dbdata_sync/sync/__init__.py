"""Per-entry sync decision."""

from .engine import LocalStore, RepositoryClient, SyncEngine, SyncResult

__all__ = ["LocalStore", "RepositoryClient", "SyncEngine", "SyncResult"]
