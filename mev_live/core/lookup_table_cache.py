"""Lookup table cache for MEV LIVE.

Maps a lookup table address to its resolved address list, or to a cached
negative result. Per table: UNFETCHED -> FETCHING -> RESOLVED | FAILED,
and back to UNFETCHED once the entry outlives the TTL.

Fetches for different tables run concurrently on a small worker pool,
gated by the rate limiter. Callers asking for a table that is already
being fetched wait on the same pending fetch. Fetch failures never reach
the caller; resolve() returns None and the failure is cached.
"""

import itertools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from ..config.thresholds import (
    LOOKUP_TABLE_FETCH_TIMEOUT,
    LOOKUP_TABLE_SWEEP_SECONDS,
    LOOKUP_TABLE_TTL_SECONDS,
)
from ..models.transactions import LookupTableEntry
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

Addresses = Tuple[str, ...]
FetchTable = Callable[[str], Optional[Sequence[str]]]


class ResolutionFailure(Exception):
    """Raised by fetch collaborators when a table cannot be resolved."""


class TableState(str, Enum):
    UNFETCHED = "unfetched"
    FETCHING = "fetching"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache counters."""

    cached_count: int
    success_count: int
    failure_count: int
    hits: int
    misses: int
    coalesced: int
    in_flight: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses + self.coalesced
        return self.hits / lookups if lookups else 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "cachedCount": self.cached_count,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "hitRate": round(self.hit_rate, 4),
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
            "inFlight": self.in_flight,
        }


@dataclass
class _PendingFetch:
    future: "Future[Optional[Addresses]]"
    deadline: float
    token: int


class LookupTableCache:
    """TTL cache of lookup table contents with coalesced, rate-limited fetches."""

    def __init__(
        self,
        fetch_table: FetchTable,
        rate_limiter: Optional[RateLimiter] = None,
        ttl: float = LOOKUP_TABLE_TTL_SECONDS,
        sweep_interval: float = LOOKUP_TABLE_SWEEP_SECONDS,
        fetch_timeout: float = LOOKUP_TABLE_FETCH_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        max_workers: Optional[int] = None,
    ) -> None:
        self._fetch_table = fetch_table
        self._limiter = rate_limiter or RateLimiter()
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self.fetch_timeout = fetch_timeout
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or self._limiter.max_calls,
            thread_name_prefix="alt-fetch",
        )
        self._lock = threading.Lock()
        self._entries: Dict[str, LookupTableEntry] = {}
        self._pending: Dict[str, _PendingFetch] = {}
        self._tokens = itertools.count(1)
        self._last_sweep = clock()

        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._successes = 0
        self._failures = 0

    def _is_expired(self, entry: LookupTableEntry, now: float) -> bool:
        return now - entry.fetched_at >= self.ttl

    def state(self, table_address: str) -> TableState:
        with self._lock:
            if table_address in self._pending:
                return TableState.FETCHING
            entry = self._entries.get(table_address)
            if entry is None or self._is_expired(entry, self._clock()):
                return TableState.UNFETCHED
            return TableState.FAILED if entry.is_failure else TableState.RESOLVED

    def _request(self, table_address: str) -> Tuple[Optional[LookupTableEntry], Optional[_PendingFetch]]:
        """Return a fresh cached entry, or the pending fetch (starting one if needed)."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(table_address)
            if entry is not None:
                if not self._is_expired(entry, now):
                    self._hits += 1
                    return entry, None
                del self._entries[table_address]

            pending = self._pending.get(table_address)
            if pending is not None:
                self._coalesced += 1
                return None, pending

            self._misses += 1
            token = next(self._tokens)
            future = self._executor.submit(self._fetch_and_store, table_address, token)
            pending = _PendingFetch(future=future, deadline=now + self.fetch_timeout, token=token)
            self._pending[table_address] = pending
            return None, pending

    def _fetch_and_store(self, table_address: str, token: int) -> Optional[Addresses]:
        """Worker: rate-limited fetch, then cache the outcome."""
        result: Optional[Addresses] = None
        try:
            if not self._limiter.acquire(timeout=self.fetch_timeout):
                raise ResolutionFailure("rate limiter wait exceeded")
            addresses = self._fetch_table(table_address)
            if addresses is None:
                raise ResolutionFailure("table not found")
            result = tuple(addresses)
        except Exception as exc:  # collaborator is unreliable; outcome is cached as failure
            logger.warning("Lookup table %s unresolved: %s", table_address, exc)
        self._store(table_address, token, result)
        return result

    def _store(self, table_address: str, token: int, result: Optional[Addresses]) -> None:
        with self._lock:
            pending = self._pending.get(table_address)
            if pending is None or pending.token != token:
                # Already abandoned after a timeout
                return
            del self._pending[table_address]
            self._entries[table_address] = LookupTableEntry(
                table_address=table_address,
                resolved_addresses=result,
                fetched_at=self._clock(),
            )
            if result is None:
                self._failures += 1
            else:
                self._successes += 1

    def _abandon(self, table_address: str, token: int) -> None:
        """Cache a timed-out fetch as a failure."""
        logger.warning(
            "Lookup table %s fetch exceeded %.1fs, caching as failed",
            table_address,
            self.fetch_timeout,
        )
        self._store(table_address, token, None)

    def _await(self, table_address: str, pending: _PendingFetch) -> Optional[Addresses]:
        remaining = max(0.0, pending.deadline - self._clock())
        try:
            return pending.future.result(timeout=remaining)
        except FutureTimeout:
            self._abandon(table_address, pending.token)
            return None

    def resolve(self, table_address: str) -> Optional[Addresses]:
        """Resolved addresses for a table, or None if it cannot be resolved."""
        entry, pending = self._request(table_address)
        if entry is not None:
            return entry.resolved_addresses
        return self._await(table_address, pending)

    def resolve_many(self, table_addresses: Iterable[str]) -> Dict[str, Optional[Addresses]]:
        """Resolve distinct tables, fetching uncached ones concurrently."""
        self.maybe_sweep()
        requests: Dict[str, Tuple[Optional[LookupTableEntry], Optional[_PendingFetch]]] = {}
        for address in table_addresses:
            if address not in requests:
                requests[address] = self._request(address)
        results: Dict[str, Optional[Addresses]] = {}
        for address, (entry, pending) in requests.items():
            if entry is not None:
                results[address] = entry.resolved_addresses
            else:
                results[address] = self._await(address, pending)
        return results

    def sweep(self) -> int:
        """Drop expired entries, positive and negative. Returns count removed."""
        with self._lock:
            now = self._clock()
            expired = [a for a, e in self._entries.items() if self._is_expired(e, now)]
            for address in expired:
                del self._entries[address]
            self._last_sweep = now
        if expired:
            logger.debug("Swept %d expired lookup tables", len(expired))
        return len(expired)

    def maybe_sweep(self) -> int:
        """Sweep if the sweep interval has elapsed since the last sweep."""
        if self._clock() - self._last_sweep < self.sweep_interval:
            return 0
        return self.sweep()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                cached_count=len(self._entries),
                success_count=self._successes,
                failure_count=self._failures,
                hits=self._hits,
                misses=self._misses,
                coalesced=self._coalesced,
                in_flight=len(self._pending),
            )

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
