from datetime import timedelta

import pytest
from pydantic import ValidationError

from rancher_inventory.metadata.core.config import InventoryConfig


class TestInventoryConfig:
    def test_defaults(self):
        config = InventoryConfig()

        assert config.metadata_addr == "rancher-metadata.rancher.internal/latest"
        assert config.metadata_url == "http://rancher-metadata.rancher.internal/latest"
        assert config.metadata_interval == timedelta(minutes=5)
        assert config.request_timeout == 10.0
        assert config.instrument is True
        assert config.debug is False

    def test_url_keeps_explicit_scheme(self):
        config = InventoryConfig(metadata_addr="https://metadata.example/latest/")
        assert config.metadata_url == "https://metadata.example/latest"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("RANCHER_INVENTORY_METADATA_ADDR", "10.0.0.2/2016-07-29")
        monkeypatch.setenv("RANCHER_INVENTORY_METADATA_INTERVAL", "00:01:00")
        monkeypatch.setenv("RANCHER_INVENTORY_DEBUG", "true")

        config = InventoryConfig()

        assert config.metadata_url == "http://10.0.0.2/2016-07-29"
        assert config.metadata_interval == timedelta(seconds=60)
        assert config.debug is True

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("RANCHER_INVENTORY_REQUEST_TIMEOUT", "3")

        assert InventoryConfig(request_timeout=7).request_timeout == 7

    @pytest.mark.parametrize(
        "field, value",
        [("metadata_interval", timedelta(0)), ("request_timeout", -1.0)],
    )
    def test_rejects_non_positive_durations(self, field, value):
        with pytest.raises(ValidationError):
            InventoryConfig(**{field: value})
