"""Structured logging decorators for the metadata client and read service.

Each decorator implements the same interface as the object it wraps and logs
one record per call carrying ``method``, ``took`` and ``success`` fields, plus
``err`` on failure or call-specific fields on success. Failures are logged at
ERROR, everything else at INFO.

Example:
    ```python
    client = MetadataClientLogger(getLogger("rancher"), RancherMetadataClient(transport))
    service = ReadServiceLogger(getLogger("rancher"), CachedReadService(repository))
    ```
"""

from __future__ import annotations

from logging import Logger
from time import perf_counter
from typing import Any, List, Optional, Tuple

from returns.result import Failure, Result

from ..core.client import MetadataClient
from ..core.errors import LookupFailure, MetadataFetchError
from ..core.models import Container, Host, RepositoryHealth
from ..core.service import ReadService


def log_call(
    logger: Logger,
    method: str,
    begin: float,
    error: Optional[Exception] = None,
    **fields: Any,
) -> None:
    """Log the outcome of one decorated call.

    Args:
        logger: Logger to emit on
        method: Name of the decorated operation
        begin: ``perf_counter()`` reading taken before the call
        error: Failure returned by the call, if any
        **fields: Additional fields, only logged for successful calls
    """
    extra = {
        "method": method,
        "took": f"{perf_counter() - begin:.6f}s",
        "success": error is None,
    }
    if error is not None:
        extra["err"] = str(error)
        logger.error(f"{method} failed", extra=extra)
    else:
        extra.update(fields)
        logger.info(f"{method} succeeded", extra=extra)


def _failure_of(result: Result) -> Optional[Exception]:
    return result.failure() if isinstance(result, Failure) else None


def _count_of(result: Result) -> int:
    return 0 if isinstance(result, Failure) else len(result.unwrap())


class MetadataClientLogger(MetadataClient):
    """Logs every metadata fetch."""

    def __init__(self, logger: Logger, client: MetadataClient):
        self.logger = logger
        self.client = client

    async def fetch_containers(self) -> Result[List[Container], MetadataFetchError]:
        begin = perf_counter()
        result = await self.client.fetch_containers()
        log_call(
            self.logger,
            "fetch_containers",
            begin,
            _failure_of(result),
            container_count=_count_of(result),
        )
        return result

    async def fetch_hosts(self) -> Result[List[Host], MetadataFetchError]:
        begin = perf_counter()
        result = await self.client.fetch_hosts()
        log_call(
            self.logger,
            "fetch_hosts",
            begin,
            _failure_of(result),
            host_count=_count_of(result),
        )
        return result


class ReadServiceLogger(ReadService):
    """Logs every read service call."""

    def __init__(self, logger: Logger, service: ReadService):
        self.logger = logger
        self.service = service

    def container(self, name: str) -> Result[Container, LookupFailure]:
        begin = perf_counter()
        result = self.service.container(name)
        log_call(
            self.logger, "container", begin, _failure_of(result), container_name=name
        )
        return result

    def containers(self) -> Result[Tuple[Container, ...], LookupFailure]:
        begin = perf_counter()
        result = self.service.containers()
        log_call(
            self.logger,
            "containers",
            begin,
            _failure_of(result),
            container_count=_count_of(result),
        )
        return result

    def health(self) -> RepositoryHealth:
        begin = perf_counter()
        health = self.service.health()
        log_call(self.logger, "health", begin, status=health.status)
        return health


__all__ = ["log_call", "MetadataClientLogger", "ReadServiceLogger"]
