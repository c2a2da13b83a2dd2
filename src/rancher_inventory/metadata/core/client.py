"""Client for the Rancher metadata service.

``MetadataClient`` is the seam the synchronization cache calls through: two
independent, side-effect-free queries that each return either the full
collection or a failure. Logging and instrumentation decorators implement the
same interface and wrap an inner client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from typing import List, Type, TypeVar

import orjson
from pydantic import BaseModel, TypeAdapter, ValidationError
from returns.result import Failure, Result, Success

from ..io.async_http import MetadataHTTPTransport
from .errors import MetadataDecodeError, MetadataFetchError
from .models import Container, Host

logger = getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CONTAINERS_SUBPATH = "/containers"
HOSTS_SUBPATH = "/hosts"


class MetadataClient(ABC):
    """Abstract interface to the Rancher metadata service."""

    @abstractmethod
    async def fetch_containers(self) -> Result[List[Container], MetadataFetchError]:
        """Fetch every container known to the metadata service."""
        pass

    @abstractmethod
    async def fetch_hosts(self) -> Result[List[Host], MetadataFetchError]:
        """Fetch every host known to the metadata service."""
        pass


def decode_collection(
    subpath: str, body: bytes, model: Type[M]
) -> Result[List[M], MetadataDecodeError]:
    """Decode a JSON array payload into a list of ``model`` instances."""
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        return Failure(MetadataDecodeError(subpath, f"invalid JSON: {e}"))

    if not isinstance(data, list):
        return Failure(
            MetadataDecodeError(
                subpath, f"expected a JSON array, got {type(data).__name__}"
            )
        )

    try:
        return Success(TypeAdapter(List[model]).validate_python(data))
    except ValidationError as e:
        return Failure(
            MetadataDecodeError(subpath, f"{e.error_count()} invalid entries: {e}")
        )


class RancherMetadataClient(MetadataClient):
    """Metadata client backed by the HTTP transport.

    Example:
        ```python
        transport = MetadataHTTPTransport("http://rancher-metadata/latest")
        client = RancherMetadataClient(transport)

        match await client.fetch_containers():
            case Success(containers):
                print(f"{len(containers)} containers")
            case Failure(error):
                print(f"metadata unavailable: {error}")
        ```
    """

    def __init__(self, transport: MetadataHTTPTransport):
        self.transport = transport

    async def _fetch(
        self, subpath: str, model: Type[M]
    ) -> Result[List[M], MetadataFetchError]:
        try:
            body = await self.transport.get(subpath)
        except MetadataFetchError as e:
            return Failure(e)
        return decode_collection(subpath, body, model)

    async def fetch_containers(self) -> Result[List[Container], MetadataFetchError]:
        return await self._fetch(CONTAINERS_SUBPATH, Container)

    async def fetch_hosts(self) -> Result[List[Host], MetadataFetchError]:
        return await self._fetch(HOSTS_SUBPATH, Host)


__all__ = [
    "MetadataClient",
    "RancherMetadataClient",
    "decode_collection",
    "CONTAINERS_SUBPATH",
    "HOSTS_SUBPATH",
]
