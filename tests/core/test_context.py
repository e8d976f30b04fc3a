"""Tests for the mazra3 conversation context store."""

from __future__ import annotations

import dataclasses
import threading

import pytest

from mazra3.core.context import DEFAULT_TTL_SECONDS, ContextStore, ConversationContext


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ContextStore:
    return ContextStore(clock=clock)


# ============================================================================
# Basic access
# ============================================================================


class TestContextStore:
    """Tests for get/set/clear."""

    def test_ttl_is_two_hours(self) -> None:
        """The default time-to-live is two hours."""
        assert DEFAULT_TTL_SECONDS == 7200
        assert ContextStore().ttl_seconds == 7200

    def test_get_creates_default(self, store: ContextStore, clock: FakeClock) -> None:
        """First access creates a default record."""
        ctx = store.get("u1")
        assert ctx == ConversationContext(region="med", updated_at=clock.now)
        assert "u1" in store

    def test_set_merges(self, store: ContextStore) -> None:
        """Patches merge into the existing record."""
        store.set("u1", {"crop": "طماطم"})
        ctx = store.set("u1", intent="irrigation")
        assert ctx.crop == "طماطم"
        assert ctx.intent == "irrigation"
        assert ctx.region == "med"

    def test_set_refreshes_timestamp(self, store: ContextStore, clock: FakeClock) -> None:
        """Each write stamps the current time."""
        store.set("u1", crop="خيار")
        clock.advance(60)
        assert store.set("u1", intent="spacing").updated_at == clock.now

    def test_get_does_not_refresh(self, store: ContextStore, clock: FakeClock) -> None:
        """Reading leaves the timestamp alone."""
        written = store.set("u1", crop="خيار").updated_at
        clock.advance(60)
        assert store.get("u1").updated_at == written

    def test_none_clears_field(self, store: ContextStore) -> None:
        """None clears an entity field."""
        store.set("u1", crop="خيار")
        assert store.set("u1", crop=None).crop is None

    def test_none_region_resets(self, store: ContextStore) -> None:
        """None region resets to the default profile."""
        store.set("u1", region="gulf_hot")
        assert store.set("u1", region=None).region == "med"

    def test_unknown_field(self, store: ContextStore) -> None:
        """Unknown patch fields are rejected."""
        with pytest.raises(ValueError, match="Unknown context fields"):
            store.set("u1", {"weather": "hot"})
        with pytest.raises(ValueError):
            store.set("u1", updated_at=0)

    def test_clear(self, store: ContextStore) -> None:
        """clear() forgets the user."""
        store.set("u1", crop="خيار")
        store.clear("u1")
        assert "u1" not in store
        assert store.get("u1").crop is None

    def test_clear_missing_is_noop(self, store: ContextStore) -> None:
        """Clearing an unknown user does nothing."""
        store.clear("nobody")
        assert len(store) == 0

    def test_users_independent(self, store: ContextStore) -> None:
        """Records for different users do not interfere."""
        store.set("u1", crop="خيار")
        store.set("u2", crop="قمح")
        assert store.get("u1").crop == "خيار"
        assert store.get("u2").crop == "قمح"

    def test_snapshots_are_immutable(self, store: ContextStore) -> None:
        """Callers cannot mutate stored state through a snapshot."""
        ctx = store.get("u1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.crop = "خيار"  # type: ignore[misc]

    def test_custom_default_region(self, clock: FakeClock) -> None:
        """Fresh records use the configured default region."""
        store = ContextStore(default_region="gulf_hot", clock=clock)
        assert store.get("u1").region == "gulf_hot"

    def test_to_dict(self, store: ContextStore) -> None:
        """to_dict() lists every field."""
        data = store.set("u1", crop="خيار").to_dict()
        assert set(data) == {"region", "crop", "intent", "disease", "pest", "updated_at"}

    def test_invalid_settings(self) -> None:
        """TTL and capacity must be positive."""
        with pytest.raises(ValueError):
            ContextStore(ttl_seconds=0)
        with pytest.raises(ValueError):
            ContextStore(capacity=0)


# ============================================================================
# Expiry
# ============================================================================


class TestExpiry:
    """Tests for lazy TTL expiry."""

    def test_before_ttl_returns_stored_fields(self, store: ContextStore, clock: FakeClock) -> None:
        """Within the TTL the exact stored record comes back."""
        stored = store.set("u1", {"crop": "طماطم", "region": "gulf_hot", "intent": "irrigation"})
        clock.advance(DEFAULT_TTL_SECONDS)
        assert store.get("u1") == stored

    def test_after_ttl_returns_fresh(self, store: ContextStore, clock: FakeClock) -> None:
        """Past the TTL a fresh default record replaces the stale one."""
        store.set("u1", {"crop": "طماطم", "region": "gulf_hot"})
        clock.advance(DEFAULT_TTL_SECONDS + 1)
        ctx = store.get("u1")
        assert ctx.crop is None
        assert ctx.region == "med"
        assert ctx.updated_at == clock.now

    def test_set_after_ttl_starts_fresh(self, store: ContextStore, clock: FakeClock) -> None:
        """A patch on an expired record does not resurrect old fields."""
        store.set("u1", crop="طماطم")
        clock.advance(DEFAULT_TTL_SECONDS + 1)
        ctx = store.set("u1", intent="spacing")
        assert ctx.crop is None
        assert ctx.intent == "spacing"

    def test_contains_respects_ttl(self, store: ContextStore, clock: FakeClock) -> None:
        """Expired records are not reported as present."""
        store.set("u1", crop="طماطم")
        clock.advance(DEFAULT_TTL_SECONDS + 1)
        assert "u1" not in store

    def test_writes_extend_lifetime(self, store: ContextStore, clock: FakeClock) -> None:
        """Regular writes keep a record alive past one TTL."""
        store.set("u1", crop="طماطم")
        for _ in range(3):
            clock.advance(DEFAULT_TTL_SECONDS - 1)
            store.set("u1", intent="irrigation")
        assert store.get("u1").crop == "طماطم"

    def test_custom_ttl(self, clock: FakeClock) -> None:
        """The TTL is configurable."""
        store = ContextStore(ttl_seconds=10, clock=clock)
        store.set("u1", crop="خيار")
        clock.advance(11)
        assert store.get("u1").crop is None


# ============================================================================
# Capacity
# ============================================================================


class TestCapacity:
    """Tests for the LRU bound."""

    def test_evicts_oldest(self, clock: FakeClock) -> None:
        """The least recently used record goes first."""
        store = ContextStore(capacity=2, clock=clock)
        store.set("a", crop="خيار")
        store.set("b", crop="قمح")
        store.set("c", crop="بصل")
        assert len(store) == 2
        assert "a" not in store
        assert "b" in store and "c" in store

    def test_access_refreshes_recency(self, clock: FakeClock) -> None:
        """Reading a record protects it from eviction."""
        store = ContextStore(capacity=2, clock=clock)
        store.set("a", crop="خيار")
        store.set("b", crop="قمح")
        store.get("a")
        store.set("c", crop="بصل")
        assert "a" in store
        assert "b" not in store


class TestConcurrency:
    """Tests for concurrent access."""

    def test_parallel_patches(self) -> None:
        """Concurrent writers neither crash nor lose users."""
        store = ContextStore()
        errors: list[Exception] = []

        def worker(n: int) -> None:
            try:
                for i in range(200):
                    store.set(f"user-{n}", crop=f"c{i}")
                    store.set("shared", intent=f"i{n}")
                    store.get(f"user-{n}")
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store) == 9
        for n in range(8):
            assert store.get(f"user-{n}").crop == "c199"
        assert store.get("shared").intent.startswith("i")

    def test_len_waits_for_writer(self) -> None:
        """len() reads the map under the store lock."""
        store = ContextStore()
        store.set("u1", crop="خيار")
        sizes: list[int] = []

        store._lock.acquire()
        try:
            reader = threading.Thread(target=lambda: sizes.append(len(store)))
            reader.start()
            reader.join(timeout=0.1)
            assert reader.is_alive()
            assert sizes == []
        finally:
            store._lock.release()
        reader.join(timeout=5)
        assert sizes == [1]
