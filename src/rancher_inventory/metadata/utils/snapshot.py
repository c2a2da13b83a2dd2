"""Immutable snapshots of one entity collection and its lookup index.

A snapshot pairs the ordered collection returned by the metadata service with
an index keyed by the entity identifier. Both halves are built together and
never modified afterwards, so publishing a new snapshot is a single reference
assignment and a reader holding a snapshot always sees a matching pair.

Example:
    ```python
    snapshot = Snapshot.build(containers, key=lambda c: c.name)
    container = snapshot.get("web_gossman_2")
    ```
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Generic, Iterable, Iterator, Mapping, Optional, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """An ordered collection together with its identifier index.

    Attributes:
        items: Entities in the order the metadata service returned them
        index: Read-only mapping of identifier to entity
        refreshed_at: When the snapshot was built, None for the initial empty one
    """

    items: Tuple[T, ...] = ()
    index: Mapping[str, T] = field(default_factory=lambda: MappingProxyType({}))
    refreshed_at: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "Snapshot[T]":
        return cls()

    @classmethod
    def build(cls, entities: Iterable[T], key: Callable[[T], str]) -> "Snapshot[T]":
        """Build a snapshot, indexing each entity by ``key``.

        Duplicate identifiers resolve last-write-wins: the last entity with a
        given identifier is kept, at the position where that identifier first
        appeared upstream.
        """
        index = {}
        for entity in entities:
            index[key(entity)] = entity
        return cls(
            items=tuple(index.values()),
            index=MappingProxyType(index),
            refreshed_at=datetime.now(timezone.utc),
        )

    def get(self, key: str) -> Optional[T]:
        return self.index.get(key)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)


__all__ = ["Snapshot"]
