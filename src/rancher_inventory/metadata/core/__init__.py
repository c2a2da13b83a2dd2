"""Core inventory functionality."""

from .client import MetadataClient, RancherMetadataClient
from .config import InventoryConfig
from .errors import (
    ContainerNotFoundError,
    ContainerRepositoryEmptyError,
    HostNotFoundError,
    HostRepositoryEmptyError,
    InventoryError,
    LookupFailure,
    MetadataDecodeError,
    MetadataFetchError,
    MetadataUnavailableError,
    NotFoundError,
    RepositoryEmptyError,
)
from .models import Container, Host, RepositoryHealth, SnapshotHealth
from .repository import MetadataCachingRepository
from .service import CachedReadService, ReadService
from .inventory import RancherInventory

__all__ = [
    "MetadataClient",
    "RancherMetadataClient",
    "InventoryConfig",
    "InventoryError",
    "LookupFailure",
    "NotFoundError",
    "RepositoryEmptyError",
    "ContainerNotFoundError",
    "ContainerRepositoryEmptyError",
    "HostNotFoundError",
    "HostRepositoryEmptyError",
    "MetadataFetchError",
    "MetadataUnavailableError",
    "MetadataDecodeError",
    "Container",
    "Host",
    "RepositoryHealth",
    "SnapshotHealth",
    "MetadataCachingRepository",
    "ReadService",
    "CachedReadService",
    "RancherInventory",
]
