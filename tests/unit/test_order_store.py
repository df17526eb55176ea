"""Unit tests for the live OrderStore."""

from __future__ import annotations

from typing import List

import pytest

from modules.orders.cache import OrderSnapshotCache
from modules.orders.dtos import OrderDocument
from modules.orders.events import OrderStatusChanged
from modules.orders.exceptions import OrderStoreNotStarted
from modules.orders.repositories.memory_repository import InMemoryOrderRepository
from modules.orders.store import OrderStore
from shared.infrastructure.bus import InMemoryEventBus
from shared.infrastructure.streams import StreamEvent

pytestmark = pytest.mark.unit

OWNER = "uid-alice"


class CapturingHandler:
    def __init__(self) -> None:
        self.events = []

    def handle(self, event) -> None:
        self.events.append(event)


@pytest.fixture()
def repository():
    return InMemoryOrderRepository()


@pytest.fixture()
def bus():
    return InMemoryEventBus()


@pytest.fixture()
def seeded_ids():
    return []


@pytest.fixture()
def store(repository, bus, seeded_ids):
    store = OrderStore(
        repository,
        owner_id=OWNER,
        snapshot_cache=OrderSnapshotCache(),
        bus=bus,
        quote_seeder=seeded_ids.append,
    )
    yield store
    store.stop()


def snapshot(*docs) -> List[OrderDocument]:
    return [OrderDocument.from_snapshot(doc_id, data) for doc_id, data in docs]


class TestLifecycle:
    def test_pump_before_start_raises(self, store):
        with pytest.raises(OrderStoreNotStarted):
            store.pump()

    def test_start_delivers_the_initial_snapshot(self, store, repository):
        repository.create({"userId": OWNER, "status": "processing"})
        store.start()

        assert store.pump(timeout=1) == 1
        assert len(store.groups.active) == 1
        assert store.badge_count == 1

    def test_writes_reach_the_running_store(self, store, repository):
        store.start()
        store.pump(timeout=1)

        order_id = repository.create({"userId": OWNER, "status": "processing"})
        repository.update(order_id, {"status": "delivered"})
        store.pump(timeout=1)

        assert [v.id for v in store.groups.past] == [order_id]
        assert store.badge_count == 0

    def test_stop_unsubscribes(self, store, repository):
        store.start()
        assert repository.subscriber_count(OWNER) == 1
        store.stop()
        assert repository.subscriber_count(OWNER) == 0
        assert not store.running

    def test_nothing_changes_after_stop(self, store, repository):
        store.start()
        store.pump(timeout=1)
        before = store.overview
        store.stop()

        changed = store.apply(StreamEvent(snapshot=snapshot(("late", {"userId": OWNER}))))

        assert changed is False
        assert store.overview == before

    def test_context_manager(self, repository, bus):
        with OrderStore(repository, OWNER, bus=bus, quote_seeder=None) as store:
            assert store.running
        assert not store.running


class TestSnapshots:
    def test_identical_snapshot_is_a_no_op(self, store):
        store.start()
        docs = snapshot(("a", {"userId": OWNER, "status": "processing"}))
        assert store.apply(StreamEvent(snapshot=docs)) is True
        assert store.apply(StreamEvent(snapshot=list(docs))) is False

    def test_latest_snapshot_replaces_the_previous_one(self, store):
        store.start()
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER}), ("b", {"userId": OWNER}))))
        store.apply(StreamEvent(snapshot=snapshot(("b", {"userId": OWNER}))))
        assert [v.id for v in store.groups.all()] == ["b"]

    def test_error_keeps_last_good_groups_and_flags_stale(self, store):
        store.start()
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER, "status": "in_transit"}))))

        assert store.apply(StreamEvent(error=RuntimeError("permission denied"))) is True

        assert store.is_stale
        assert [v.id for v in store.groups.active] == ["a"]

    def test_snapshot_after_error_clears_stale(self, store):
        store.start()
        docs = snapshot(("a", {"userId": OWNER}))
        store.apply(StreamEvent(snapshot=docs))
        store.apply(StreamEvent(error=RuntimeError("offline")))

        assert store.apply(StreamEvent(snapshot=docs)) is True
        assert not store.is_stale

    def test_error_before_any_snapshot_leaves_store_empty(self, store):
        store.start()
        assert store.apply(StreamEvent(error=RuntimeError("offline"))) is False
        assert store.overview is None
        assert store.groups.all() == []

    def test_feed_errors_from_the_repository(self, store, repository):
        repository.create({"userId": OWNER, "status": "processing"})
        store.start()
        store.pump(timeout=1)

        repository.fail_subscribers(OWNER, RuntimeError("quota exceeded"))
        store.pump(timeout=1)

        assert store.is_stale
        assert store.badge_count == 1

    def test_on_change_receives_each_new_overview(self, repository, bus):
        seen = []
        store = OrderStore(repository, OWNER, bus=bus, quote_seeder=None, on_change=seen.append)
        store.start()
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER}))))
        store.stop()
        assert len(seen) == 1
        assert seen[0].badge_count == 1


class TestCache:
    def test_start_paints_the_cached_view_as_stale(self, repository, bus):
        cache = OrderSnapshotCache()
        cache.save(OWNER, snapshot(("cached", {"userId": OWNER, "status": "dispatched"})))

        store = OrderStore(repository, OWNER, snapshot_cache=cache, bus=bus, quote_seeder=None)
        store.start()
        try:
            assert store.is_stale
            assert [v.id for v in store.groups.active] == ["cached"]
            store.pump(timeout=1)
            assert not store.is_stale
            assert store.groups.all() == []
        finally:
            store.stop()

    def test_applied_snapshot_is_cached(self, store):
        store.start()
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER, "status": "paid"}))))
        cached = OrderSnapshotCache().load(OWNER)
        assert [order.id for order in cached] == ["a"]


class TestSideEffects:
    def test_status_change_is_announced(self, store, bus):
        handler = CapturingHandler()
        bus.subscribe(OrderStatusChanged, handler)
        store.start()

        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER, "productTitle": "VIP Cabin", "status": "processing"}))))
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER, "productTitle": "VIP Cabin", "status": "dispatched"}))))

        assert len(handler.events) == 1
        event = handler.events[0]
        assert event.old_status == "processing"
        assert event.new_status == "dispatched"
        assert event.message == "VIP Cabin is now dispatched"

    def test_first_sighting_is_not_a_change(self, store, bus):
        handler = CapturingHandler()
        bus.subscribe(OrderStatusChanged, handler)
        store.start()
        store.apply(StreamEvent(snapshot=snapshot(("a", {"userId": OWNER, "status": "paid"}))))
        assert handler.events == []

    def test_priced_rental_quote_is_seeded_once(self, store, seeded_ids):
        store.start()
        quote = ("r1", {"userId": OWNER, "type": "rent", "amount": 60000})
        store.apply(StreamEvent(snapshot=snapshot(quote)))
        store.apply(StreamEvent(snapshot=snapshot(quote, ("b", {"userId": OWNER}))))
        assert seeded_ids == ["r1"]

    def test_failed_seed_is_retried_on_next_snapshot(self, repository, bus):
        calls = []

        def flaky_seeder(order_id):
            calls.append(order_id)
            if len(calls) == 1:
                raise ConnectionError("broker down")

        store = OrderStore(repository, OWNER, bus=bus, quote_seeder=flaky_seeder)
        store.start()
        quote = ("r1", {"userId": OWNER, "type": "rent", "amount": 60000})
        store.apply(StreamEvent(snapshot=snapshot(quote)))
        store.apply(StreamEvent(snapshot=snapshot(quote, ("b", {"userId": OWNER}))))
        store.stop()
        assert calls == ["r1", "r1"]
