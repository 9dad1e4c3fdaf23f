from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Protocol

from dbdata_sync.schemas import ManifestEntry, SyncStatus

logger = logging.getLogger(__name__)


class RepositoryClient(Protocol):
    def get_checksum(self, path: str) -> str:
        """Return the repository's checksum for an artifact path."""

    def fetch(self, path: str, destination: Path) -> None:
        """Download an artifact path, replacing ``destination`` entirely."""


class LocalStore(Protocol):
    def exists(self, path: Path) -> bool:
        """Return whether a local compressed file is present."""

    def checksum(self, path: Path) -> str:
        """Return the checksum of a local compressed file."""

    def prepare_destination(self, path: Path) -> None:
        """Create whatever a fetch into ``path`` needs (parent directories)."""

    def decompress(self, path: Path) -> Path:
        """Write the decompressed sibling of ``path`` and return its location."""


@dataclass(slots=True, frozen=True)
class SyncResult:
    entry: ManifestEntry
    status: SyncStatus
    compressed_path: Path
    decompressed_path: Path
    checksum: str | None
    duration_seconds: float

    @property
    def downloaded(self) -> bool:
        return self.status == SyncStatus.DOWNLOADED


class SyncEngine:
    """Keeps one manifest entry's local copy in step with the repository.

    A fetch happens when the compressed file is missing locally or when its
    checksum differs from the one the repository reports. Decompression runs on
    every call, so the decompressed file is rebuilt even when nothing was
    downloaded.
    """

    def __init__(
        self,
        *,
        data_folder: Path,
        client: RepositoryClient,
        store: LocalStore,
    ) -> None:
        self.data_folder = Path(data_folder)
        self.client = client
        self.store = store

    def sync(self, entry: ManifestEntry) -> SyncResult:
        started_at = perf_counter()
        local_path = entry.compressed_path(self.data_folder)

        checksum = self._current_checksum(entry, local_path)
        if checksum is None:
            self.store.prepare_destination(local_path)
            self.client.fetch(entry.remote_path, local_path)
            status = SyncStatus.DOWNLOADED
            logger.info("> Downloaded")
        else:
            status = SyncStatus.UP_TO_DATE
            logger.info("> Up-to-date")

        decompressed_path = self.store.decompress(local_path)
        logger.info("> Uncompressed")

        return SyncResult(
            entry=entry,
            status=status,
            compressed_path=local_path,
            decompressed_path=decompressed_path,
            checksum=checksum,
            duration_seconds=perf_counter() - started_at,
        )

    def _current_checksum(self, entry: ManifestEntry, local_path: Path) -> str | None:
        """Return the matching checksum, or None when a fetch is required."""
        if not self.store.exists(local_path):
            logger.debug("local copy missing path=%s", local_path)
            return None

        remote_checksum = self.client.get_checksum(entry.remote_path)
        local_checksum = self.store.checksum(local_path)
        logger.debug(
            "checksum compare path=%s remote=%s local=%s",
            entry.remote_path,
            remote_checksum,
            local_checksum,
        )
        if _normalize_checksum(remote_checksum) != _normalize_checksum(local_checksum):
            return None
        return local_checksum


def _normalize_checksum(value: str) -> str:
    return value.strip().lower()
