"""Manifest parsing."""

from .reader import parse_manifest, read_manifest

__all__ = ["parse_manifest", "read_manifest"]
