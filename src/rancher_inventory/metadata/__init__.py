"""Rancher metadata synchronization and read service."""

from .core import (
    CachedReadService,
    Container,
    ContainerNotFoundError,
    ContainerRepositoryEmptyError,
    Host,
    HostNotFoundError,
    HostRepositoryEmptyError,
    InventoryConfig,
    InventoryError,
    LookupFailure,
    MetadataCachingRepository,
    MetadataClient,
    MetadataDecodeError,
    MetadataFetchError,
    MetadataUnavailableError,
    NotFoundError,
    RancherInventory,
    RancherMetadataClient,
    ReadService,
    RepositoryEmptyError,
    RepositoryHealth,
    SnapshotHealth,
)
from .io import MetadataHTTPTransport
from .middleware import (
    MetadataClientInstrumenter,
    MetadataClientLogger,
    ReadServiceInstrumenter,
    ReadServiceLogger,
    ServiceMetrics,
)
from .utils import Snapshot

__all__ = [
    "RancherInventory",
    "InventoryConfig",
    "MetadataClient",
    "RancherMetadataClient",
    "MetadataHTTPTransport",
    "MetadataCachingRepository",
    "ReadService",
    "CachedReadService",
    "Container",
    "Host",
    "RepositoryHealth",
    "SnapshotHealth",
    "Snapshot",
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
    "MetadataClientLogger",
    "ReadServiceLogger",
    "MetadataClientInstrumenter",
    "ReadServiceInstrumenter",
    "ServiceMetrics",
]
