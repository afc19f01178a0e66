from __future__ import annotations

import threading
import time

import pytest

from oauthflow.stores import InMemoryPendingAuthorizationStore
from tests.conftest import FakeClock


def test_put_then_get_returns_verifier(memory_store: InMemoryPendingAuthorizationStore) -> None:
    pending = memory_store.put("state-1", "verifier-1")

    assert memory_store.get("state-1") == "verifier-1"
    assert pending.state == "state-1"
    assert "verifier-1" not in repr(pending)


def test_put_overwrites_existing_state(
    memory_store: InMemoryPendingAuthorizationStore,
    clock: FakeClock,
) -> None:
    memory_store.put("state-1", "old")
    clock.advance(5)
    memory_store.put("state-1", "new")

    assert memory_store.get("state-1") == "new"
    assert [entry.created_at for entry in memory_store.list()] == [clock.now]


def test_get_unknown_state_returns_none(memory_store: InMemoryPendingAuthorizationStore) -> None:
    assert memory_store.get("never-issued") is None


def test_ttl_boundary(memory_store: InMemoryPendingAuthorizationStore, clock: FakeClock) -> None:
    memory_store.put("state-1", "verifier-1")

    clock.advance(900 - 1)
    assert memory_store.get("state-1") == "verifier-1"

    clock.advance(2)
    assert memory_store.get("state-1") is None


def test_evict_expired_removes_only_old_entries(
    memory_store: InMemoryPendingAuthorizationStore,
    clock: FakeClock,
) -> None:
    memory_store.put("old", "v-old")
    clock.advance(600)
    memory_store.put("fresh", "v-fresh")
    clock.advance(301)

    assert memory_store.evict_expired() == 1
    assert [entry.state for entry in memory_store.list()] == ["fresh"]


def test_evict_expired_is_idempotent(
    memory_store: InMemoryPendingAuthorizationStore,
    clock: FakeClock,
) -> None:
    memory_store.put("a", "va")
    memory_store.put("b", "vb")
    clock.advance(901)
    memory_store.put("c", "vc")

    assert memory_store.evict_expired() == 2
    assert memory_store.evict_expired() == 0
    assert [entry.state for entry in memory_store.list()] == ["c"]


def test_consume_removes_entry(memory_store: InMemoryPendingAuthorizationStore) -> None:
    memory_store.put("state-1", "verifier-1")

    consumed = memory_store.consume("state-1")

    assert consumed is not None
    assert consumed.verifier == "verifier-1"
    assert memory_store.consume("state-1") is None
    assert memory_store.get("state-1") is None


def test_consume_expired_entry_returns_none_and_drops_it(
    memory_store: InMemoryPendingAuthorizationStore,
    clock: FakeClock,
) -> None:
    memory_store.put("state-1", "verifier-1")
    clock.advance(901)

    assert memory_store.consume("state-1") is None
    assert memory_store.list() == []


def test_reinstate_keeps_original_timestamp(
    memory_store: InMemoryPendingAuthorizationStore,
    clock: FakeClock,
) -> None:
    memory_store.put("state-1", "verifier-1")
    clock.advance(800)
    consumed = memory_store.consume("state-1")
    assert consumed is not None

    memory_store.reinstate(consumed)
    assert memory_store.get("state-1") == "verifier-1"

    clock.advance(101)
    assert memory_store.get("state-1") is None


def test_invalid_ttl_rejected() -> None:
    with pytest.raises(ValueError):
        InMemoryPendingAuthorizationStore(ttl_seconds=0)
    with pytest.raises(ValueError):
        InMemoryPendingAuthorizationStore(eviction_interval_seconds=0)


def test_background_sweep_evicts_expired_entries(clock: FakeClock) -> None:
    store = InMemoryPendingAuthorizationStore(
        ttl_seconds=900,
        eviction_interval_seconds=0.01,
        clock=clock,
    )
    store.put("state-1", "verifier-1")
    clock.advance(901)

    with store:
        assert store.is_running
        deadline = time.monotonic() + 2.0
        while store.list() and time.monotonic() < deadline:
            time.sleep(0.01)

    assert store.list() == []
    assert not store.is_running


def test_start_twice_keeps_single_thread(memory_store: InMemoryPendingAuthorizationStore) -> None:
    memory_store.start()
    before = {thread.name for thread in threading.enumerate()}
    memory_store.start()
    after = [thread for thread in threading.enumerate() if thread.name == "oauthflow-eviction"]
    memory_store.stop(timeout=1.0)

    assert "oauthflow-eviction" in before
    assert len(after) == 1


def test_concurrent_puts_and_gets_do_not_lose_entries(
    memory_store: InMemoryPendingAuthorizationStore,
) -> None:
    memory_store.start()
    errors: list[str] = []

    def worker(worker_id: int) -> None:
        for index in range(200):
            state = f"state-{worker_id}-{index}"
            memory_store.put(state, f"verifier-{worker_id}-{index}")
            if memory_store.get(state) != f"verifier-{worker_id}-{index}":
                errors.append(state)

    threads = [threading.Thread(target=worker, args=(worker_id,)) for worker_id in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    memory_store.stop(timeout=1.0)

    assert errors == []
    assert len(memory_store.list()) == 8 * 200
