from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from time import perf_counter

from dbdata_sync.errors import SyncAbortedError
from dbdata_sync.schemas import ManifestEntry, SyncStatus
from dbdata_sync.sync import SyncEngine, SyncResult

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SyncRunResult:
    results: list[SyncResult]
    duration_seconds: float

    @property
    def downloaded(self) -> int:
        return sum(1 for result in self.results if result.status == SyncStatus.DOWNLOADED)

    @property
    def up_to_date(self) -> int:
        return sum(1 for result in self.results if result.status == SyncStatus.UP_TO_DATE)


def run_sync(entries: Iterable[ManifestEntry], *, engine: SyncEngine) -> SyncRunResult:
    """Sync entries in order and stop at the first failure."""
    started_at = perf_counter()
    results: list[SyncResult] = []

    for index, entry in enumerate(entries, start=1):
        logger.info("Processing file '%s'", entry.path)
        logger.debug("entry index=%d collection=%s", index, entry.collection or "-")
        try:
            result = engine.sync(entry)
        except Exception as exc:
            logger.error(
                "sync aborted index=%d path=%s error=%s: %s",
                index,
                entry.path,
                type(exc).__name__,
                exc,
            )
            raise SyncAbortedError(entry_path=entry.path, index=index, cause=exc) from exc
        results.append(result)

    return SyncRunResult(results=results, duration_seconds=perf_counter() - started_at)


def render_result_table(run: SyncRunResult) -> str:
    if not run.results:
        return "no entries processed"

    headers = ("#", "collection", "path", "status", "seconds")
    rows = [
        (
            str(index),
            result.entry.collection or "-",
            _truncate(result.entry.path, limit=60),
            result.status.value,
            f"{result.duration_seconds:.3f}",
        )
        for index, result in enumerate(run.results, start=1)
    ]
    return render_table(headers=headers, rows=rows)


def render_table(*, headers: tuple[str, ...], rows: list[tuple[str, ...]]) -> str:
    if not rows:
        return "no rows"

    widths = [
        max(len(headers[column]), *(len(row[column]) for row in rows))
        for column in range(len(headers))
    ]

    def _line(values: tuple[str, ...]) -> str:
        return " | ".join(value.ljust(widths[index]) for index, value in enumerate(values))

    separator = "-+-".join("-" * width for width in widths)
    return "\n".join([_line(headers), separator, *(_line(row) for row in rows)])


def _truncate(value: str, *, limit: int) -> str:
    if len(value) <= limit:
        return value
    return f"{value[: limit - 3]}..."
