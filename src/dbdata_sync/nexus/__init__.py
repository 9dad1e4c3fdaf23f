"""Nexus repository access."""

from .client import NexusClient

__all__ = ["NexusClient"]
