"""Configuration for the Rancher inventory service."""

from datetime import timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class InventoryConfig(BaseSettings):
    """Configuration for the Rancher inventory service.

    Every field can be set from the environment with the ``RANCHER_INVENTORY_``
    prefix, e.g. ``RANCHER_INVENTORY_METADATA_INTERVAL=00:05:00``.
    """

    # Metadata service settings
    metadata_addr: str = Field(
        default="rancher-metadata.rancher.internal/latest",
        description="Rancher metadata service address",
    )
    metadata_interval: timedelta = Field(
        default=timedelta(seconds=300),
        description="Duration between Rancher metadata cache refreshes",
    )
    request_timeout: float = Field(
        default=10.0, description="Metadata request timeout in seconds"
    )

    # Observability settings
    debug: bool = Field(default=False, description="Turn on debug logging output")
    instrument: bool = Field(
        default=True, description="Wrap services with Prometheus instrumentation"
    )
    metrics_namespace: str = Field(
        default="rancher_inventory", description="Prometheus metric namespace"
    )

    @field_validator("metadata_interval")
    @classmethod
    def validate_interval(cls, v: timedelta) -> timedelta:
        if v.total_seconds() <= 0:
            raise ValueError("metadata_interval must be positive")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @property
    def metadata_url(self) -> str:
        """Metadata service base URL; Rancher metadata is usually plain HTTP."""
        addr = self.metadata_addr.rstrip("/")
        if "://" not in addr:
            addr = f"http://{addr}"
        return addr

    class Config:
        env_prefix = "RANCHER_INVENTORY_"
        case_sensitive = False
