"""Rancher inventory: the assembled client, cache and read service.

``RancherInventory`` wires the pieces together the way the service runs them:

    HTTP transport
      -> RancherMetadataClient
        -> MetadataClientLogger -> MetadataClientInstrumenter
          -> MetadataCachingRepository (background refresh loop)
            -> CachedReadService
              -> ReadServiceLogger -> ReadServiceInstrumenter

Logging and instrumentation are optional layers; leaving them out does not
change what the service returns.

Example:
    ```python
    import asyncio
    from rancher_inventory.metadata import InventoryConfig, RancherInventory

    async def main():
        config = InventoryConfig(metadata_addr="rancher-metadata/latest")

        async with RancherInventory(config) as inventory:
            await inventory.wait_until_ready()

            match inventory.service.containers():
                case Success(containers):
                    for container in containers:
                        print(container.name, container.host_name)
                case Failure(error):
                    print(f"inventory unavailable: {error}")

    asyncio.run(main())
    ```

Note:
    Construct it inside a running event loop; the refresh loop starts with it.
"""

from logging import getLogger
from typing import Optional

import httpx
from prometheus_client import REGISTRY, CollectorRegistry

from ..io.async_http import MetadataHTTPTransport
from ..middleware.instrumentation import (
    MetadataClientInstrumenter,
    ReadServiceInstrumenter,
    ServiceMetrics,
)
from ..middleware.service_logging import MetadataClientLogger, ReadServiceLogger
from .client import MetadataClient, RancherMetadataClient
from .config import InventoryConfig
from .models import RepositoryHealth
from .repository import MetadataCachingRepository
from .service import CachedReadService, ReadService

logger = getLogger(__name__)


class RancherInventory:
    """Composition root for the Rancher inventory service.

    Attributes:
        config: Inventory configuration
        transport: HTTP transport to the metadata service
        client: Decorated metadata client used by the cache
        repository: Synchronization cache
        service: Decorated read service for consumers
    """

    def __init__(
        self,
        config: Optional[InventoryConfig] = None,
        registry: CollectorRegistry = REGISTRY,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        start: bool = True,
    ):
        """Assemble the inventory.

        Args:
            config: Inventory configuration. If None, it is read from the
                environment.
            registry: Prometheus registry for the instrumentation layers.
                Inventories built on the same registry share their collectors.
            http_transport: Optional httpx transport, used to fake the
                metadata service in tests.
            start: Start the periodic refresh loop right away. When False,
                call ``refresh()`` to populate the cache.
        """
        self.config = config or InventoryConfig()
        self.registry = registry

        self.transport = MetadataHTTPTransport(
            self.config.metadata_url,
            timeout=self.config.request_timeout,
            transport=http_transport,
        )
        self.client = self._decorate_client(RancherMetadataClient(self.transport))
        self.repository = MetadataCachingRepository(
            self.client,
            interval=self.config.metadata_interval if start else None,
        )
        self.service = self._decorate_service(CachedReadService(self.repository))

        logger.info(
            f"Rancher inventory using metadata service {self.config.metadata_url}"
        )

    def _decorate_client(self, client: MetadataClient) -> MetadataClient:
        client = MetadataClientLogger(getLogger("rancher_inventory.client"), client)
        if self.config.instrument:
            client = MetadataClientInstrumenter(
                ServiceMetrics.create(
                    self.config.metrics_namespace,
                    "rancher_client_service",
                    registry=self.registry,
                    with_inventory_gauges=True,
                ),
                client,
            )
        return client

    def _decorate_service(self, service: ReadService) -> ReadService:
        service = ReadServiceLogger(getLogger("rancher_inventory.service"), service)
        if self.config.instrument:
            service = ReadServiceInstrumenter(
                ServiceMetrics.create(
                    self.config.metrics_namespace,
                    "rancher_server_service",
                    registry=self.registry,
                ),
                service,
            )
        return service

    async def refresh(self) -> None:
        """Run one refresh cycle now."""
        await self.repository.refresh()

    async def wait_until_ready(self) -> None:
        await self.repository.wait_until_ready()

    def health(self) -> RepositoryHealth:
        return self.service.health()

    async def close(self):
        """Stop the refresh loop and release the HTTP connection pool."""
        await self.repository.close()
        await self.transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


__all__ = ["RancherInventory"]
