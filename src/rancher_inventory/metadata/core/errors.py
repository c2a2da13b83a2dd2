"""Custom error types for Rancher inventory operations."""

from __future__ import annotations

from typing import Optional


class InventoryError(Exception):
    """Base exception for inventory operations."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class LookupFailure(InventoryError):
    """Base for failures returned by repository lookups."""

    kind: str = "entity"


class NotFoundError(LookupFailure):
    """Raised when the snapshot is populated but the key is absent."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"{self.kind} not found")


class RepositoryEmptyError(LookupFailure):
    """Raised when the snapshot holds no entities at all."""

    def __init__(self) -> None:
        super().__init__(f"{self.kind} repository is empty")


class ContainerNotFoundError(NotFoundError):
    kind = "container"


class ContainerRepositoryEmptyError(RepositoryEmptyError):
    kind = "container"


class HostNotFoundError(NotFoundError):
    kind = "host"


class HostRepositoryEmptyError(RepositoryEmptyError):
    kind = "host"


ContainerLookupError = ContainerNotFoundError | ContainerRepositoryEmptyError
HostLookupError = HostNotFoundError | HostRepositoryEmptyError


class MetadataFetchError(InventoryError):
    """Raised when a fetch from the metadata service fails."""

    def __init__(self, subpath: str, reason: str) -> None:
        self.subpath = subpath
        self.reason = reason
        super().__init__(f"Failed to fetch {subpath}: {reason}")


class MetadataUnavailableError(MetadataFetchError):
    """The metadata service was unreachable or answered with a non-2xx status."""

    def __init__(
        self, subpath: str, reason: str, status_code: Optional[int] = None
    ) -> None:
        self.status_code = status_code
        super().__init__(subpath, reason)


class MetadataDecodeError(MetadataFetchError):
    """The metadata service answered with a payload that could not be decoded."""


def http_status_for(error: InventoryError) -> int:
    """Map an inventory error onto the HTTP status a transport should answer with."""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, RepositoryEmptyError):
        # The upstream metadata service has not given us anything usable yet
        return 424
    return 500


__all__ = [
    "InventoryError",
    "LookupFailure",
    "NotFoundError",
    "RepositoryEmptyError",
    "ContainerNotFoundError",
    "ContainerRepositoryEmptyError",
    "HostNotFoundError",
    "HostRepositoryEmptyError",
    "ContainerLookupError",
    "HostLookupError",
    "MetadataFetchError",
    "MetadataUnavailableError",
    "MetadataDecodeError",
    "http_status_for",
]
