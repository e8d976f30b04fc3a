"""Per-user conversation context for mazra3.

Each user has a small record: region profile plus the last crop, intent,
disease and pest seen. Records expire after a fixed time-to-live; expiry is
checked lazily when a record is accessed, never by a background sweep. The
store is bounded: when full, the least recently used record is evicted.

All operations take one lock, so concurrent turns for the same user apply
their merge-patches one after the other (last writer wins per field).
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Callable, Mapping

from .lexicon import DEFAULT_REGION

logger = logging.getLogger(__name__)

# 2 hours
DEFAULT_TTL_SECONDS = 2 * 60 * 60
DEFAULT_CAPACITY = 10_000


@dataclass(frozen=True)
class ConversationContext:
    """Snapshot of one user's context.

    Attributes:
        region: Region profile id
        crop: Last recognized crop
        intent: Last classified intent
        disease: Last recognized disease
        pest: Last recognized pest
        updated_at: Clock reading of the last write
    """

    region: str = DEFAULT_REGION
    crop: str | None = None
    intent: str | None = None
    disease: str | None = None
    pest: str | None = None
    updated_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Fields a patch may touch (updated_at is owned by the store)
PATCHABLE_FIELDS: frozenset[str] = frozenset(
    f.name for f in fields(ConversationContext) if f.name != "updated_at"
)


class ContextStore:
    """Bounded in-memory context map with lazy TTL expiry.

    Example:
        >>> store = ContextStore()
        >>> store.set("u1", {"crop": "طماطم"}).crop
        'طماطم'
        >>> store.get("u1").region
        'med'
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        default_region: str = DEFAULT_REGION,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Create an empty store.

        Args:
            ttl_seconds: Age after which a record counts as absent
            capacity: Most records kept before LRU eviction
            default_region: Region given to fresh records
            clock: Monotonic time source (seconds)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")

        self.ttl_seconds = ttl_seconds
        self.capacity = capacity
        self.default_region = default_region
        self._clock = clock or time.monotonic
        self._records: OrderedDict[str, ConversationContext] = OrderedDict()
        self._lock = threading.Lock()

    def _fresh(self, now: float) -> ConversationContext:
        return ConversationContext(region=self.default_region, updated_at=now)

    def _is_expired(self, record: ConversationContext, now: float) -> bool:
        return now - record.updated_at > self.ttl_seconds

    def _load(self, user_id: str, now: float) -> ConversationContext:
        """Current record for a user, creating or resetting it. Caller holds the lock."""
        record = self._records.get(user_id)
        if record is not None and self._is_expired(record, now):
            logger.debug(f"Context for {user_id!r} expired; resetting")
            record = None
        if record is None:
            record = self._fresh(now)
            self._store(user_id, record)
        else:
            self._records.move_to_end(user_id)
        return record

    def _store(self, user_id: str, record: ConversationContext) -> None:
        self._records[user_id] = record
        self._records.move_to_end(user_id)
        while len(self._records) > self.capacity:
            evicted, _ = self._records.popitem(last=False)
            logger.debug(f"Context store full; evicted {evicted!r}")

    def get(self, user_id: str) -> ConversationContext:
        """Fetch a user's context.

        Creates a default record on first access and replaces an expired
        one with a default record. Reading does not refresh the timestamp.
        """
        with self._lock:
            return self._load(user_id, self._clock())

    def set(
        self,
        user_id: str,
        patch: Mapping[str, Any] | None = None,
        **changes: Any,
    ) -> ConversationContext:
        """Merge-patch a user's context and refresh its timestamp.

        A ``None`` region resets to the default region; ``None`` for any
        other field clears it.

        Args:
            user_id: User identifier
            patch: Field -> new value
            **changes: Same as ``patch``, as keywords

        Returns:
            The updated context

        Raises:
            ValueError: If the patch names an unknown field
        """
        updates = {**(patch or {}), **changes}
        unknown = set(updates) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown context fields: {sorted(unknown)}")
        if "region" in updates and updates["region"] is None:
            updates["region"] = self.default_region

        with self._lock:
            now = self._clock()
            record = replace(self._load(user_id, now), **updates, updated_at=now)
            self._store(user_id, record)
            return record

    def clear(self, user_id: str) -> None:
        """Forget a user's context (no-op if absent)."""
        with self._lock:
            self._records.pop(user_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            record = self._records.get(user_id)  # type: ignore[arg-type]
            return record is not None and not self._is_expired(record, self._clock())


__all__ = [
    "ContextStore",
    "ConversationContext",
    "DEFAULT_CAPACITY",
    "DEFAULT_TTL_SECONDS",
    "PATCHABLE_FIELDS",
]
