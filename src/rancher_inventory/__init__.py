"""Rancher Inventory - cached read-only view of Rancher containers and hosts."""

__version__ = "0.1.0"

# Import main components
from .metadata import RancherInventory

__all__ = ["RancherInventory"]
