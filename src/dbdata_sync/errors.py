from __future__ import annotations


class SyncError(Exception):
    """Base class for every error raised by dbdata-sync."""


class ConfigError(SyncError):
    pass


class ManifestParseError(SyncError):
    pass


class RepositoryError(SyncError):
    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class ArtifactNotFoundError(RepositoryError):
    pass


class TransportError(RepositoryError):
    pass


class LocalStoreError(SyncError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class CorruptDataError(LocalStoreError):
    pass


class SyncAbortedError(SyncError):
    """Raised by the driver when one manifest entry fails.

    The failing error is available as ``__cause__``.
    """

    def __init__(self, *, entry_path: str, index: int, cause: BaseException) -> None:
        super().__init__(f"sync failed at entry {index} path={entry_path}: {cause}")
        self.entry_path = entry_path
        self.index = index
        self.cause = cause
