"""Utility modules for inventory metadata."""

from .snapshot import Snapshot

__all__ = ["Snapshot"]
