"""Logging configuration for rancher_inventory."""

from .logger import setup_logging

__all__ = ["setup_logging"]
