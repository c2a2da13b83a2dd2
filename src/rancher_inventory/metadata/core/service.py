"""Read service exposing the synchronization cache to consumers.

The read service is the surface transports call into. It adds no behaviour of
its own beyond normalising results: every not-found failure derives from
``NotFoundError`` and every empty-repository failure from
``RepositoryEmptyError``, whichever entity kind was asked for.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from returns.result import Result

from .errors import LookupFailure
from .models import Container, RepositoryHealth
from .repository import MetadataCachingRepository


class ReadService(ABC):
    """Operations offered to consumers of the inventory."""

    @abstractmethod
    def container(self, name: str) -> Result[Container, LookupFailure]:
        """Look up a single container by name."""
        pass

    @abstractmethod
    def containers(self) -> Result[Tuple[Container, ...], LookupFailure]:
        """List every container."""
        pass

    @abstractmethod
    def health(self) -> RepositoryHealth:
        """Report the freshness of the underlying cache."""
        pass


class CachedReadService(ReadService):
    """Read service answering from a ``MetadataCachingRepository``."""

    def __init__(self, repository: MetadataCachingRepository):
        self.repository = repository

    def container(self, name: str) -> Result[Container, LookupFailure]:
        return self.repository.container_by_name(name)

    def containers(self) -> Result[Tuple[Container, ...], LookupFailure]:
        return self.repository.containers()

    def health(self) -> RepositoryHealth:
        return self.repository.health()


__all__ = ["ReadService", "CachedReadService"]
