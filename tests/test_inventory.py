import asyncio
from datetime import timedelta

from prometheus_client import REGISTRY, CollectorRegistry
from returns.result import Failure

from rancher_inventory import RancherInventory
from rancher_inventory.metadata.core.config import InventoryConfig
from rancher_inventory.metadata.core.errors import RepositoryEmptyError
from rancher_inventory.metadata.middleware.instrumentation import (
    MetadataClientInstrumenter,
    ReadServiceInstrumenter,
)
from rancher_inventory.metadata.middleware.service_logging import ReadServiceLogger

CONFIG = InventoryConfig(metadata_addr="rancher-metadata/latest")


class TestRancherInventory:
    async def test_manual_refresh(self, metadata_service):
        registry = CollectorRegistry()
        async with RancherInventory(
            CONFIG,
            registry=registry,
            http_transport=metadata_service.transport,
            start=False,
        ) as inventory:
            assert isinstance(inventory.service.containers(), Failure)

            await inventory.refresh()

            container = inventory.service.container("web_service-web_1").unwrap()
            assert container.host_name == "host-2.corp"
            assert inventory.health().status == "healthy"

        labels = {"method": "fetch_containers"}
        assert (
            registry.get_sample_value(
                "rancher_inventory_rancher_client_service_request_count_total", labels
            )
            == 1
        )
        assert (
            registry.get_sample_value(
                "rancher_inventory_rancher_client_service_containers", labels
            )
            == 6
        )
        assert (
            registry.get_sample_value(
                "rancher_inventory_rancher_server_service_request_count_total",
                {"method": "container"},
            )
            == 1
        )

    async def test_background_refresh(self, metadata_service):
        config = CONFIG.model_copy(update={"metadata_interval": timedelta(hours=1)})
        async with RancherInventory(
            config,
            registry=CollectorRegistry(),
            http_transport=metadata_service.transport,
        ) as inventory:
            await asyncio.wait_for(inventory.wait_until_ready(), timeout=5)

            assert inventory.repository.running
            assert len(inventory.service.containers().unwrap()) == 6

        assert not inventory.repository.running

    async def test_unreachable_service(self, metadata_service):
        metadata_service.fail("/containers")
        metadata_service.fail("/hosts")
        async with RancherInventory(
            CONFIG,
            registry=CollectorRegistry(),
            http_transport=metadata_service.transport,
            start=False,
        ) as inventory:
            await inventory.refresh()

            assert isinstance(
                inventory.service.container("web_gossman_2").failure(),
                RepositoryEmptyError,
            )
            assert inventory.health().status == "unhealthy"

    async def test_decorator_layers(self, metadata_service):
        async with RancherInventory(
            CONFIG,
            registry=CollectorRegistry(),
            http_transport=metadata_service.transport,
            start=False,
        ) as inventory:
            assert isinstance(inventory.client, MetadataClientInstrumenter)
            assert isinstance(inventory.service, ReadServiceInstrumenter)

    async def test_without_instrumentation(self, metadata_service):
        registry = CollectorRegistry()
        config = CONFIG.model_copy(update={"instrument": False})
        async with RancherInventory(
            config,
            registry=registry,
            http_transport=metadata_service.transport,
            start=False,
        ) as inventory:
            await inventory.refresh()

            assert isinstance(inventory.service, ReadServiceLogger)
            assert inventory.service.container("web_gossman_2").unwrap().host_name == (
                "host-4.corp"
            )

        assert list(registry.collect()) == []

    async def test_rebuilt_with_default_registry(self, metadata_service):
        name = "rancher_inventory_rancher_client_service_request_count_total"
        labels = {"method": "fetch_containers"}
        before = REGISTRY.get_sample_value(name, labels) or 0

        for _ in range(2):
            async with RancherInventory(
                CONFIG, http_transport=metadata_service.transport, start=False
            ) as inventory:
                await inventory.refresh()

                assert inventory.service.container("web_gossman_2").unwrap().host_name == (
                    "host-4.corp"
                )

        assert REGISTRY.get_sample_value(name, labels) == before + 2
