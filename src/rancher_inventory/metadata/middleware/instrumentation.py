"""Prometheus instrumentation decorators for the metadata client and read service.

Every decorated call increments ``<namespace>_<subsystem>_request_count`` and
observes ``<namespace>_<subsystem>_request_latency_seconds``, both labelled by
``method``. The client instrumenter also publishes the number of containers
and hosts the metadata service last reported.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Dict, Iterator, List, Optional, Tuple
from weakref import WeakKeyDictionary

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram
from returns.result import Result, Success

from ..core.client import MetadataClient
from ..core.errors import LookupFailure, MetadataFetchError
from ..core.models import Container, Host, RepositoryHealth
from ..core.service import ReadService

FIELD_KEYS = ["method"]

# ServiceMetrics already registered, per registry and (namespace, subsystem)
_REGISTERED: WeakKeyDictionary[
    CollectorRegistry, Dict[Tuple[str, str], ServiceMetrics]
] = WeakKeyDictionary()


@dataclass
class ServiceMetrics:
    """Collectors shared by the decorators of one subsystem.

    Attributes:
        request_count: Number of calls per method
        request_latency: Call duration in seconds per method
        containers: Containers reported by the last successful fetch
        hosts: Hosts reported by the last successful fetch
    """

    request_count: Counter
    request_latency: Histogram
    containers: Optional[Gauge] = None
    hosts: Optional[Gauge] = None

    @classmethod
    def create(
        cls,
        namespace: str,
        subsystem: str,
        registry: CollectorRegistry = REGISTRY,
        with_inventory_gauges: bool = False,
    ) -> "ServiceMetrics":
        """Register the collectors for ``subsystem`` on ``registry``.

        Collectors are registered once per registry. Later calls for the same
        namespace and subsystem return the metrics already registered, so
        several inventories in one process share them.
        """
        registered = _REGISTERED.setdefault(registry, {})
        metrics = registered.get((namespace, subsystem))
        if metrics is None:
            metrics = cls(
                cls._counter(namespace, subsystem, registry),
                cls._histogram(namespace, subsystem, registry),
            )
            registered[(namespace, subsystem)] = metrics
        if with_inventory_gauges and metrics.containers is None:
            metrics.containers = Gauge(
                "containers",
                "Number of containers in the Rancher environment.",
                FIELD_KEYS,
                namespace=namespace,
                subsystem=subsystem,
                registry=registry,
            )
            metrics.hosts = Gauge(
                "hosts",
                "Number of hosts in the Rancher environment.",
                FIELD_KEYS,
                namespace=namespace,
                subsystem=subsystem,
                registry=registry,
            )
        return metrics

    @staticmethod
    def _counter(namespace: str, subsystem: str, registry: CollectorRegistry) -> Counter:
        return Counter(
            "request_count",
            "Number of requests received.",
            FIELD_KEYS,
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    @staticmethod
    def _histogram(
        namespace: str, subsystem: str, registry: CollectorRegistry
    ) -> Histogram:
        return Histogram(
            "request_latency_seconds",
            "Duration of requests in seconds.",
            FIELD_KEYS,
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    @contextmanager
    def observe(self, method: str) -> Iterator[None]:
        begin = perf_counter()
        try:
            yield
        finally:
            self.request_count.labels(method=method).inc()
            self.request_latency.labels(method=method).observe(perf_counter() - begin)


class MetadataClientInstrumenter(MetadataClient):
    """Instruments every metadata fetch."""

    def __init__(self, metrics: ServiceMetrics, client: MetadataClient):
        self.metrics = metrics
        self.client = client

    async def fetch_containers(self) -> Result[List[Container], MetadataFetchError]:
        with self.metrics.observe("fetch_containers"):
            result = await self.client.fetch_containers()
        if self.metrics.containers is not None and isinstance(result, Success):
            self.metrics.containers.labels(method="fetch_containers").set(
                len(result.unwrap())
            )
        return result

    async def fetch_hosts(self) -> Result[List[Host], MetadataFetchError]:
        with self.metrics.observe("fetch_hosts"):
            result = await self.client.fetch_hosts()
        if self.metrics.hosts is not None and isinstance(result, Success):
            self.metrics.hosts.labels(method="fetch_hosts").set(len(result.unwrap()))
        return result


class ReadServiceInstrumenter(ReadService):
    """Instruments every read service call."""

    def __init__(self, metrics: ServiceMetrics, service: ReadService):
        self.metrics = metrics
        self.service = service

    def container(self, name: str) -> Result[Container, LookupFailure]:
        with self.metrics.observe("container"):
            return self.service.container(name)

    def containers(self) -> Result[Tuple[Container, ...], LookupFailure]:
        with self.metrics.observe("containers"):
            return self.service.containers()

    def health(self) -> RepositoryHealth:
        with self.metrics.observe("health"):
            return self.service.health()


__all__ = [
    "ServiceMetrics",
    "MetadataClientInstrumenter",
    "ReadServiceInstrumenter",
]
