import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import httpx
import pytest
from returns.result import Failure, Result, Success

from rancher_inventory.log import logger as log_module
from rancher_inventory.metadata.core.client import MetadataClient, RancherMetadataClient
from rancher_inventory.metadata.core.errors import (
    MetadataFetchError,
    MetadataUnavailableError,
)
from rancher_inventory.metadata.core.models import Container, Host
from rancher_inventory.metadata.io.async_http import MetadataHTTPTransport

TESTDATA = Path(__file__).parent / "testdata"

METADATA_URL = "http://rancher-metadata/latest"

CONTAINERS_JSON = (TESTDATA / "rancher_containers.json").read_bytes()
HOSTS_JSON = (TESTDATA / "rancher_hosts.json").read_bytes()

Route = Union[tuple, Callable[[httpx.Request], httpx.Response]]


class FakeMetadataService:
    """In-process stand-in for the Rancher metadata service.

    Each route is either a ``(status, body)`` pair or a callable receiving the
    request, which may raise an httpx error to simulate a network failure.
    """

    def __init__(self):
        self.routes: Dict[str, Route] = {
            "/latest/containers": (200, CONTAINERS_JSON),
            "/latest/hosts": (200, HOSTS_JSON),
        }
        self.requests: List[httpx.Request] = []

    def respond(self, subpath: str, status: int, body: Union[str, bytes] = b""):
        if isinstance(body, str):
            body = body.encode()
        self.routes[f"/latest{subpath}"] = (status, body)

    def fail(self, subpath: str, error: type = httpx.ConnectError):
        def handler(request: httpx.Request) -> httpx.Response:
            raise error("connection refused", request=request)

        self.routes[f"/latest{subpath}"] = handler

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404)
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


class StubMetadataClient(MetadataClient):
    """Metadata client returning preset results, optionally held at a gate."""

    def __init__(
        self,
        containers: Optional[Result] = None,
        hosts: Optional[Result] = None,
    ):
        self.containers_result = Success([]) if containers is None else containers
        self.hosts_result = Success([]) if hosts is None else hosts
        self.container_gate: Optional[asyncio.Event] = None
        self.host_gate: Optional[asyncio.Event] = None
        self.container_calls = 0
        self.host_calls = 0

    async def fetch_containers(self) -> Result[List[Container], MetadataFetchError]:
        self.container_calls += 1
        if self.container_gate is not None:
            await self.container_gate.wait()
        result = self.containers_result
        if isinstance(result, Exception):
            raise result
        # Hand out fresh objects each call, as a real fetch would
        return result.map(lambda cs: [c.model_copy() for c in cs])

    async def fetch_hosts(self) -> Result[List[Host], MetadataFetchError]:
        self.host_calls += 1
        if self.host_gate is not None:
            await self.host_gate.wait()
        result = self.hosts_result
        if isinstance(result, Exception):
            raise result
        return result.map(lambda hs: [h.model_copy() for h in hs])


def unavailable(subpath: str, status: int = 500) -> Failure:
    return Failure(
        MetadataUnavailableError(subpath, f"unexpected status {status}", status)
    )


def make_container(name: str, host_id: str = "", service_index: int = 1) -> Container:
    return Container(
        name=name,
        state="running",
        private_ip="10.42.0.1",
        service_index=service_index,
        host_id=host_id,
    )


@pytest.fixture
def metadata_service() -> FakeMetadataService:
    return FakeMetadataService()


@pytest.fixture
async def http_transport(metadata_service):
    transport = MetadataHTTPTransport(METADATA_URL, transport=metadata_service.transport)
    yield transport
    await transport.close()


@pytest.fixture
def metadata_client(http_transport) -> RancherMetadataClient:
    return RancherMetadataClient(http_transport)


@pytest.fixture
def stub_client() -> StubMetadataClient:
    return StubMetadataClient()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any ``setup_logging`` call so caplog keeps seeing package records."""
    root = logging.getLogger()
    root_level = root.level
    yield
    log_module._QUEUE_LISTENERS.clear()
    log_module._CONFIGURED_LOGGERS.clear()

    package_logger = logging.getLogger("rancher_inventory")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True

    for handler in list(root.handlers):
        if type(handler).__module__ in ("logging", "logging.handlers"):
            root.removeHandler(handler)
    root.setLevel(root_level)
