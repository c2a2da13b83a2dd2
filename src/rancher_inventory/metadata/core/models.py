"""Pydantic models for type-safe Rancher metadata handling.

The metadata service speaks its own JSON dialect (``primary_ip``,
``host_uuid``, numeric strings for ``service_index``). These models decode that
dialect into typed entities and serialise them back out with the field names
consumers of this package see.

Example:
    ```python
    from rancher_inventory.metadata.core.models import Container, Host

    container = Container.model_validate(
        {
            "name": "web_gossman_2",
            "state": "running",
            "primary_ip": "10.42.250.129",
            "service_index": "2",
            "host_uuid": "e966be1e-6543-4310-9a4a-5016f86b0eb1",
        }
    )
    host = Host.model_validate({"uuid": container.host_id, "name": "host-4.corp"})
    container.host_name = host.name

    print(container.to_json_bytes())
    ```
"""

from datetime import datetime
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

# Service index reported for containers not managed by any Rancher service
ORPHANED_SERVICE_INDEX = 0


class Container(BaseModel):
    """A running (or stopped) container as reported by the metadata service.

    Attributes:
        name: Container name, unique within one refresh snapshot
        state: Rancher state label, e.g. "running" or "stopped"
        private_ip: Address on the Rancher internal overlay network
        service_index: Index within the owning service; 0 means orphaned
        host_id: Rancher UUID of the host running the container
        host_name: Display name of that host, filled in by enrichment
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    state: str
    private_ip: str = Field(alias="primary_ip")
    service_index: int = ORPHANED_SERVICE_INDEX
    host_id: str = Field(default="", alias="host_uuid")
    host_name: str = ""

    @field_validator("service_index", mode="before")
    @classmethod
    def parse_service_index(cls, v: Any) -> int:
        """Parse the numeric-as-string service index.

        Rancher reports the index as a string and omits it for standalone
        containers, so absent values fall back to the orphaned sentinel.
        """
        if v is None or v == "":
            return ORPHANED_SERVICE_INDEX
        if isinstance(v, bool):
            raise ValueError("service_index must be numeric")
        if isinstance(v, int):
            return v
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v)
        raise ValueError(f"service_index must be numeric, got {v!r}")

    @field_validator("host_id", mode="before")
    @classmethod
    def parse_host_id(cls, v: Any) -> str:
        return "" if v is None else v

    @computed_field
    @property
    def is_orphaned(self) -> bool:
        """Whether the container is unattached to any Rancher service."""
        return self.service_index == ORPHANED_SERVICE_INDEX

    def to_dict(self) -> dict:
        """Consumer-facing representation; the host UUID stays internal."""
        return self.model_dump(exclude={"host_id"})

    def to_json_bytes(self) -> bytes:
        return orjson.dumps(self.to_dict())


class Host(BaseModel):
    """A Rancher host.

    Attributes:
        id: Rancher UUID of the host
        name: Display hostname
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="uuid")
    name: str

    def to_dict(self) -> dict:
        return self.model_dump()

    def to_json_bytes(self) -> bytes:
        return orjson.dumps(self.to_dict())


class SnapshotHealth(BaseModel):
    """Refresh bookkeeping for one entity kind."""

    kind: str
    size: int = 0
    refreshed_at: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @computed_field
    @property
    def loaded(self) -> bool:
        """Whether the published snapshot holds any entities."""
        return self.size > 0

    @computed_field
    @property
    def healthy(self) -> bool:
        return self.loaded and self.last_error is None


class RepositoryHealth(BaseModel):
    """Health of the synchronization cache as a whole.

    Status values:
        - "healthy": both kinds loaded and their last refresh succeeded
        - "degraded": data is served but at least one kind is stale or empty
        - "unhealthy": no containers have ever been loaded
    """

    containers: SnapshotHealth
    hosts: SnapshotHealth
    cycles: int = 0

    @computed_field
    @property
    def status(self) -> str:
        if not self.containers.loaded:
            return "unhealthy"
        if self.containers.healthy and self.hosts.healthy:
            return "healthy"
        return "degraded"

    def to_json_bytes(self) -> bytes:
        return orjson.dumps(self.model_dump(), option=orjson.OPT_UTC_Z)


__all__ = [
    "ORPHANED_SERVICE_INDEX",
    "Container",
    "Host",
    "SnapshotHealth",
    "RepositoryHealth",
]
