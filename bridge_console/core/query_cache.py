"""
Read-through query cache with stale-while-revalidate.

Every scoped query goes through QueryCache.fetch() with a key built from
(entity kind, scope, filters, page, limit). Identical keys share one in-flight
request and one stored result. A stale result is returned immediately while a
background refresh runs; a miss waits for the fetch. Transient failures are
retried with exponential backoff; the last error is raised only once retries
are exhausted.

All bookkeeping happens on the event loop thread, so no locking is needed.
"""

import asyncio
import dataclasses
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, Set

from pydantic import BaseModel

from bridge_console.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from bridge_console.core.permissions import Scope

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]

# Errors that a retry cannot fix.
NON_RETRYABLE_ERRORS = (AuthenticationError, PermissionDeniedError, NotFoundError)


class RefetchTrigger(str, Enum):
    FOCUS = "focus"
    RECONNECT = "reconnect"


@dataclasses.dataclass(frozen=True)
class CachePolicy:
    stale_window: Optional[float] = 0.0  # None: never goes stale on its own
    gc_window: float = 600.0
    refetch_triggers: FrozenSet[RefetchTrigger] = frozenset({RefetchTrigger.FOCUS, RefetchTrigger.RECONNECT})
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "CachePolicy":
        return cls(
            stale_window=settings.cache_stale_seconds,
            gc_window=settings.cache_gc_seconds,
            refetch_triggers=frozenset(RefetchTrigger(t) for t in settings.get_refetch_triggers_list()),
            max_retries=settings.cache_max_retries,
            retry_base_delay=settings.cache_retry_base_delay,
            retry_max_delay=settings.cache_retry_max_delay,
        )

    def with_changes(self, **changes) -> "CachePolicy":
        return dataclasses.replace(self, **changes)

    def retry_delay(self, attempt: int) -> float:
        return min(self.retry_base_delay * (2 ** attempt), self.retry_max_delay)


class CacheEntry:
    def __init__(self, key: tuple, policy: CachePolicy):
        self.key = key
        self.policy = policy
        self.fetcher: Optional[Fetcher] = None
        self.data: Any = None
        self.has_data = False
        self.error: Optional[str] = None
        self.updated_at: Optional[float] = None
        self.last_access: float = 0.0
        self.task: Optional[asyncio.Task] = None
        self.generation = 0
        self.committed_generation = 0
        # Generation that was current when the entry was invalidated; only a
        # fetch started after that point makes the entry fresh again.
        self.invalidated_generation: Optional[int] = None

    def is_stale(self, now: float) -> bool:
        if not self.has_data or self.invalidated_generation is not None:
            return True
        if self.policy.stale_window is None:
            return False
        return now - self.updated_at >= self.policy.stale_window


def _freeze(value: Any) -> Any:
    if isinstance(value, Scope):
        return value.cache_key()
    if isinstance(value, BaseModel):
        return _freeze(value.model_dump())
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [_freeze(v) for v in value]
        return tuple(sorted(items, key=repr)) if isinstance(value, (set, frozenset)) else tuple(items)
    if isinstance(value, Enum):
        return value.value
    return value


class QueryCache:
    def __init__(self, policy: Optional[CachePolicy] = None, clock: Callable[[], float] = time.monotonic):
        self.policy = policy or CachePolicy()
        self._clock = clock
        self._entries: Dict[tuple, CacheEntry] = {}
        self._background: Set[asyncio.Task] = set()

    @staticmethod
    def make_key(kind: str, *parts: Any) -> tuple:
        return (kind,) + tuple(_freeze(p) for p in parts)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: tuple) -> bool:
        return key in self._entries

    def peek(self, key: tuple) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def fetch(
        self,
        key: tuple,
        fetcher: Fetcher,
        *,
        policy: Optional[CachePolicy] = None,
        enabled: bool = True,
    ) -> Any:
        """Return the cached value for key, fetching or revalidating as the policy requires.

        With enabled=False nothing is fetched and None is returned.
        """
        if not enabled:
            logger.debug(f"Query {key[0]} disabled, not issued")
            return None

        self.collect_garbage()
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(key, policy or self.policy)
            self._entries[key] = entry
        elif policy is not None:
            entry.policy = policy
        entry.fetcher = fetcher
        entry.last_access = now

        if entry.has_data:
            if entry.is_stale(now) and entry.task is None:
                self._revalidate(entry)
            return entry.data

        task = entry.task or self._start(entry)
        return await asyncio.shield(task)

    async def refetch(self, key: tuple) -> Any:
        """Force a new fetch for key; it supersedes any request already in flight."""
        entry = self._entries.get(key)
        if entry is None or entry.fetcher is None:
            raise KeyError(key)
        entry.last_access = self._clock()
        return await asyncio.shield(self._start(entry))

    def invalidate(self, kind: Optional[str] = None) -> int:
        """Mark every entry of `kind` (or every entry) stale. Returns the number marked."""
        count = 0
        for entry in self._entries.values():
            if kind is None or entry.key[0] == kind:
                entry.invalidated_generation = entry.generation
                count += 1
        if count:
            logger.debug(f"Invalidated {count} cached {kind or 'queries'}")
        return count

    def notify(self, trigger, scope: Optional[Scope] = None) -> int:
        """Refresh stale, recently used entries whose policy reacts to `trigger`.

        With a scope, only that scope's entries are refreshed.
        """
        trigger = RefetchTrigger(trigger)
        owner = _freeze(scope) if scope is not None else None
        now = self._clock()
        scheduled = 0
        for entry in list(self._entries.values()):
            if trigger not in entry.policy.refetch_triggers:
                continue
            if owner is not None and (len(entry.key) < 2 or entry.key[1] != owner):
                continue
            if entry.fetcher is None or entry.task is not None:
                continue
            if now - entry.last_access >= entry.policy.gc_window:
                continue
            if entry.is_stale(now):
                self._revalidate(entry)
                scheduled += 1
        logger.debug(f"{trigger.value}: {scheduled} queries refreshing")
        return scheduled

    def collect_garbage(self) -> int:
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.task is None and now - entry.last_access >= entry.policy.gc_window
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    async def drain(self) -> None:
        """Wait for every background refresh to settle."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _start(self, entry: CacheEntry) -> asyncio.Task:
        entry.generation += 1
        task = asyncio.ensure_future(self._run(entry, entry.fetcher, entry.generation))
        entry.task = task
        return task

    def _revalidate(self, entry: CacheEntry) -> None:
        task = self._start(entry)
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Background refresh failed, keeping stale data: {task.exception()}")

    async def _run(self, entry: CacheEntry, fetcher: Fetcher, generation: int) -> Any:
        policy = entry.policy
        attempt = 0
        try:
            while True:
                try:
                    data = await fetcher()
                    break
                except NON_RETRYABLE_ERRORS as e:
                    self._record_error(entry, generation, e)
                    raise
                except Exception as e:
                    if attempt >= policy.max_retries:
                        logger.error(f"Query {entry.key[0]} failed after {attempt + 1} attempt(s): {e}")
                        self._record_error(entry, generation, e)
                        raise
                    delay = policy.retry_delay(attempt)
                    attempt += 1
                    logger.warning(f"Query {entry.key[0]} failed ({e}), retry {attempt}/{policy.max_retries} in {delay}s")
                    await asyncio.sleep(delay)

            if generation > entry.committed_generation:
                entry.data = data
                entry.has_data = True
                entry.error = None
                entry.updated_at = self._clock()
                entry.committed_generation = generation
                if entry.invalidated_generation is not None and generation > entry.invalidated_generation:
                    entry.invalidated_generation = None
            else:
                logger.debug(f"Discarding superseded response for {entry.key[0]} (generation {generation})")
                data = entry.data
            return data
        finally:
            if entry.task is asyncio.current_task():
                entry.task = None

    def _record_error(self, entry: CacheEntry, generation: int, error: Exception) -> None:
        if generation >= entry.committed_generation:
            entry.error = getattr(error, "message", None) or str(error)
