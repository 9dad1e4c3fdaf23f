"""Local compressed artifact storage."""

from .local import GzipLocalStore, decompressed_path_for

__all__ = ["GzipLocalStore", "decompressed_path_for"]
