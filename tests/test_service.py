import pytest
from returns.result import Failure, Success

from rancher_inventory.metadata.core.errors import (
    ContainerNotFoundError,
    ContainerRepositoryEmptyError,
    HostNotFoundError,
    InventoryError,
    MetadataDecodeError,
    NotFoundError,
    RepositoryEmptyError,
    http_status_for,
)
from rancher_inventory.metadata.core.models import Host
from rancher_inventory.metadata.core.repository import MetadataCachingRepository
from rancher_inventory.metadata.core.service import CachedReadService

from conftest import StubMetadataClient, make_container


@pytest.fixture
async def service():
    client = StubMetadataClient(
        containers=Success(
            [make_container("web_1", "host-a"), make_container("web_2", "host-a")]
        ),
        hosts=Success([Host(id="host-a", name="host-a.corp")]),
    )
    repository = MetadataCachingRepository(client)
    await repository.refresh()
    return CachedReadService(repository)


class TestCachedReadService:
    def test_container(self, service):
        result = service.container("web_2")

        assert isinstance(result, Success)
        assert result.unwrap().host_name == "host-a.corp"

    def test_container_not_found(self, service):
        result = service.container("web_3")

        assert isinstance(result, Failure)
        assert isinstance(result.failure(), NotFoundError)
        assert result.failure().key == "web_3"

    def test_containers(self, service):
        assert [c.name for c in service.containers().unwrap()] == ["web_1", "web_2"]

    def test_empty_repository(self, stub_client):
        service = CachedReadService(MetadataCachingRepository(stub_client))

        assert isinstance(service.container("web_1").failure(), RepositoryEmptyError)
        assert isinstance(service.containers().failure(), RepositoryEmptyError)

    def test_health(self, service):
        health = service.health()

        assert health.status == "healthy"
        assert health.containers.size == 2
        assert health.hosts.size == 1


class TestErrors:
    def test_not_found_kinds_share_base(self):
        assert str(ContainerNotFoundError("x")) == "container not found"
        assert str(HostNotFoundError("x")) == "host not found"
        assert isinstance(HostNotFoundError("x"), NotFoundError)

    def test_every_error_is_an_inventory_error(self):
        assert isinstance(ContainerRepositoryEmptyError(), InventoryError)
        assert isinstance(MetadataDecodeError("/hosts", "bad"), InventoryError)

    @pytest.mark.parametrize(
        "error, status",
        [
            (ContainerNotFoundError("web_1"), 404),
            (HostNotFoundError("host-a"), 404),
            (ContainerRepositoryEmptyError(), 424),
            (MetadataDecodeError("/containers", "invalid JSON"), 500),
        ],
    )
    def test_http_status_for(self, error, status):
        assert http_status_for(error) == status
