"""Synchronization cache over the Rancher metadata service.

The metadata service is slow, sometimes unavailable, and can only answer
"give me everything". ``MetadataCachingRepository`` calls it on a fixed
interval, keeps the last good containers and hosts in memory, copies each
host's display name onto the containers it runs, and answers lookups against
whatever is currently published.

Refresh cycle:
    1. Fetch containers and hosts concurrently. Each fetch that succeeds
       publishes a new snapshot for its kind; a failed fetch leaves the
       previous snapshot in place. New containers get their host names from
       the host snapshot published at that moment, before they are visible.
    2. Once both fetches have finished, set ``host_name`` on every published
       container from the published host index.
    3. Sleep for the interval, then start again.

Consistency:
    Each kind is held in one immutable ``Snapshot`` (ordered items plus id
    index) published by a single attribute assignment. Lookups read that
    attribute once, so a reader sees either the old or the new pair, never a
    mix, and never needs a lock. Until the cycle-end enrichment runs, a
    reader may briefly see host names taken from the previous host snapshot.

Example:
    ```python
    async with MetadataCachingRepository(client, interval=timedelta(minutes=5)) as repo:
        await repo.wait_until_ready()

        match repo.container_by_name("web_gossman_2"):
            case Success(container):
                print(container.host_name)
            case Failure(error):
                print(error)
    ```
"""

from asyncio import CancelledError, Event, Lock, Task, create_task, gather, sleep
from datetime import datetime, timedelta, timezone
from logging import getLogger
from typing import Dict, Iterable, Optional, Tuple

from returns.result import Failure, Result, Success

from ...log.logger import NOTICE, SUCCESS
from ..utils.snapshot import Snapshot
from .client import MetadataClient
from .errors import (
    ContainerLookupError,
    ContainerNotFoundError,
    ContainerRepositoryEmptyError,
    HostLookupError,
    HostNotFoundError,
    HostRepositoryEmptyError,
)
from .models import Container, Host, RepositoryHealth, SnapshotHealth

logger = getLogger(__name__)


class MetadataCachingRepository:
    """In-memory store of Rancher containers and hosts, refreshed periodically.

    Attributes:
        client: Metadata client used for every refresh
        interval: Time between the end of one refresh cycle and the start of
            the next, None when no background loop was requested
    """

    def __init__(
        self,
        client: MetadataClient,
        interval: Optional[timedelta] = None,
    ):
        """Initialize an empty repository.

        Args:
            client: Metadata client (optionally decorated) to refresh from.
            interval: When given, the background refresh loop is started
                immediately, which requires a running event loop. Leave it out
                to drive refreshes manually with ``refresh()``.
        """
        self.client = client
        self.interval = interval

        self._containers: Snapshot[Container] = Snapshot.empty()
        self._hosts: Snapshot[Host] = Snapshot.empty()

        self._last_attempt: Dict[str, Optional[datetime]] = {
            "container": None,
            "host": None,
        }
        self._last_error: Dict[str, Optional[str]] = {
            "container": None,
            "host": None,
        }
        self._cycles = 0

        self._cycle_lock = Lock()
        self._ready = Event()
        self._populate_task: Optional[Task] = None

        if interval is not None:
            self.cache_populate_every(interval)

    # Lookups

    def container_by_name(self, name: str) -> Result[Container, ContainerLookupError]:
        """Return the container identified by ``name``."""
        snapshot = self._containers
        if snapshot.is_empty:
            return Failure(ContainerRepositoryEmptyError())
        container = snapshot.get(name)
        if container is None:
            return Failure(ContainerNotFoundError(name))
        return Success(container)

    def containers(
        self,
    ) -> Result[Tuple[Container, ...], ContainerRepositoryEmptyError]:
        """Return every container in the current snapshot.

        An empty snapshot is a failure whether no refresh has succeeded yet or
        the metadata service reported zero containers.
        """
        snapshot = self._containers
        if snapshot.is_empty:
            return Failure(ContainerRepositoryEmptyError())
        return Success(snapshot.items)

    def host_by_id(self, host_id: str) -> Result[Host, HostLookupError]:
        """Return the host identified by its Rancher UUID."""
        snapshot = self._hosts
        if snapshot.is_empty:
            return Failure(HostRepositoryEmptyError())
        host = snapshot.get(host_id)
        if host is None:
            return Failure(HostNotFoundError(host_id))
        return Success(host)

    def hosts(self) -> Result[Tuple[Host, ...], HostRepositoryEmptyError]:
        """Return every host in the current snapshot."""
        snapshot = self._hosts
        if snapshot.is_empty:
            return Failure(HostRepositoryEmptyError())
        return Success(snapshot.items)

    # Refresh

    async def _refresh_containers(self) -> bool:
        """Replace the container snapshot if the fetch succeeds.

        Returns:
            True if a new snapshot was published.
        """
        self._last_attempt["container"] = datetime.now(timezone.utc)
        result = await self.client.fetch_containers()
        if isinstance(result, Failure):
            error = result.failure()
            self._last_error["container"] = str(error)
            logger.warning(f"Keeping previous container snapshot: {error}")
            return False

        containers = result.unwrap()
        self._enrich(containers, self._hosts)
        self._containers = Snapshot.build(containers, key=lambda c: c.name)
        self._last_error["container"] = None
        logger.debug(f"Published {len(self._containers)} containers")
        return True

    async def _refresh_hosts(self) -> bool:
        """Replace the host snapshot if the fetch succeeds.

        Returns:
            True if a new snapshot was published.
        """
        self._last_attempt["host"] = datetime.now(timezone.utc)
        result = await self.client.fetch_hosts()
        if isinstance(result, Failure):
            error = result.failure()
            self._last_error["host"] = str(error)
            logger.warning(f"Keeping previous host snapshot: {error}")
            return False

        self._hosts = Snapshot.build(result.unwrap(), key=lambda h: h.id)
        self._last_error["host"] = None
        logger.debug(f"Published {len(self._hosts)} hosts")
        return True

    @staticmethod
    def _enrich(containers: Iterable[Container], hosts: Snapshot[Host]) -> None:
        """Copy host display names from ``hosts`` onto ``containers``."""
        for container in containers:
            host = hosts.get(container.host_id)
            container.host_name = host.name if host is not None else ""

    async def refresh(self) -> None:
        """Run one refresh cycle: fetch both kinds concurrently, then enrich."""
        async with self._cycle_lock:
            results = await gather(
                self._refresh_containers(),
                self._refresh_hosts(),
                return_exceptions=True,
            )
            for kind, result in zip(("container", "host"), results):
                if isinstance(result, Exception):
                    self._last_error[kind] = str(result)
                    logger.error(f"Unexpected {kind} refresh failure: {result!r}")

            self._enrich(self._containers, self._hosts)
            self._cycles += 1
            self._ready.set()

        counts = {
            "container_count": len(self._containers),
            "host_count": len(self._hosts),
        }
        if all(result is True for result in results):
            logger.log(SUCCESS, f"Refresh cycle {self._cycles} complete", extra=counts)
        else:
            logger.log(
                NOTICE, f"Refresh cycle {self._cycles} serving stale data", extra=counts
            )

    def cache_populate_every(self, interval: timedelta) -> None:
        """Start the background loop refreshing the cache every ``interval``.

        The first cycle runs immediately. Does nothing if the loop is already
        running.
        """
        if self._populate_task is not None and not self._populate_task.done():
            return
        self.interval = interval
        self._populate_task = create_task(self._populate_loop(interval))

    async def _populate_loop(self, interval: timedelta):
        """Background task refreshing the cache until cancelled."""
        logger.info(
            f"Refreshing metadata cache every {interval.total_seconds():.0f}s"
        )
        while True:
            try:
                await self.refresh()
                await sleep(interval.total_seconds())
            except CancelledError:
                break
            except Exception as e:
                logger.exception(f"Metadata refresh cycle failed: {e}")
                await sleep(interval.total_seconds())

    async def wait_until_ready(self) -> None:
        """Wait until the first refresh cycle has completed."""
        await self._ready.wait()

    @property
    def running(self) -> bool:
        return self._populate_task is not None and not self._populate_task.done()

    def _snapshot_health(self, kind: str, snapshot: Snapshot) -> SnapshotHealth:
        return SnapshotHealth(
            kind=kind,
            size=len(snapshot),
            refreshed_at=snapshot.refreshed_at,
            last_attempt_at=self._last_attempt[kind],
            last_error=self._last_error[kind],
        )

    def health(self) -> RepositoryHealth:
        """Report snapshot sizes, freshness and the last refresh errors."""
        return RepositoryHealth(
            containers=self._snapshot_health("container", self._containers),
            hosts=self._snapshot_health("host", self._hosts),
            cycles=self._cycles,
        )

    async def close(self):
        """Stop the background refresh loop."""
        task, self._populate_task = self._populate_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except CancelledError:
            pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


__all__ = ["MetadataCachingRepository"]
