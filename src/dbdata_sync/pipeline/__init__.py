"""Run orchestration over a whole manifest."""

from .run import SyncRunResult, render_result_table, render_table, run_sync

__all__ = [
    "SyncRunResult",
    "render_result_table",
    "render_table",
    "run_sync",
]
