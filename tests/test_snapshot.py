import pytest

from rancher_inventory.metadata.core.models import Host
from rancher_inventory.metadata.utils.snapshot import Snapshot


def host(uuid, name):
    return Host(id=uuid, name=name)


class TestSnapshot:
    def test_empty(self):
        snapshot = Snapshot.empty()

        assert snapshot.is_empty
        assert len(snapshot) == 0
        assert snapshot.get("anything") is None
        assert snapshot.refreshed_at is None

    def test_build_indexes_every_item(self):
        hosts = [host("a", "host-a"), host("b", "host-b")]
        snapshot = Snapshot.build(hosts, key=lambda h: h.id)

        assert snapshot.items == tuple(hosts)
        assert snapshot.get("b").name == "host-b"
        assert set(snapshot.index) == {"a", "b"}
        assert snapshot.refreshed_at is not None

    def test_duplicate_keys_last_write_wins(self):
        snapshot = Snapshot.build(
            [host("a", "first"), host("b", "b"), host("a", "second")],
            key=lambda h: h.id,
        )

        assert [h.name for h in snapshot] == ["second", "b"]
        assert snapshot.get("a") is snapshot.items[0]

    def test_index_is_read_only(self):
        snapshot = Snapshot.build([host("a", "host-a")], key=lambda h: h.id)

        with pytest.raises(TypeError):
            snapshot.index["b"] = host("b", "host-b")

    def test_build_copies_source_collection(self):
        hosts = [host("a", "host-a")]
        snapshot = Snapshot.build(hosts, key=lambda h: h.id)
        hosts.append(host("b", "host-b"))

        assert len(snapshot) == 1

    def test_iterates_in_upstream_order(self):
        hosts = [host("c", "c"), host("a", "a"), host("b", "b")]
        snapshot = Snapshot.build(hosts, key=lambda h: h.id)

        assert [h.id for h in snapshot] == ["c", "a", "b"]
