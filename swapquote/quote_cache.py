"""
In-memory quote cache with TTL support.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

from swapquote.models import Quote

CACHE_TTL_SECONDS = 2 * 60 * 60


class ReadWriteLock:
    """
    Shared-read / exclusive-write lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Waiting writers block new readers so writes are not starved.
    Not reentrant.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class _CacheEntry:
    quote: Quote
    expires_at: float


class QuoteCache:
    """
    Quote cache keyed by (input token, output token, amount text).

    The amount is the text the client submitted, so "1" and "1.0" are
    different keys. Expired entries are treated as absent but stay stored;
    there is no eviction.
    """

    def __init__(self, ttl: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.time):
        """
        Initialize cache.

        Args:
            ttl: Time-to-live in seconds
            clock: Returns the current time in seconds
        """
        self.ttl = ttl
        self._clock = clock
        self._lock = ReadWriteLock()
        self._entries: Dict[str, Dict[str, Dict[str, _CacheEntry]]] = {}

    def get(self, input_token: str, output_token: str, amount: str) -> Optional[Quote]:
        """
        Get cached quote if not expired.

        Args:
            input_token: Input token symbol
            output_token: Output token symbol
            amount: Amount text as submitted

        Returns:
            Cached quote, or None if not found or expired
        """
        with self._lock.read():
            entry = self._entries.get(input_token, {}).get(output_token, {}).get(amount)

        if entry is None:
            return None

        # Valid strictly before the expiry instant
        if self._clock() >= entry.expires_at:
            return None

        return entry.quote

    def set(self, input_token: str, output_token: str, amount: str, quote: Quote):
        """
        Store a quote, replacing any entry for the same key.

        Args:
            input_token: Input token symbol
            output_token: Output token symbol
            amount: Amount text as submitted
            quote: Quote to cache
        """
        entry = _CacheEntry(quote=quote, expires_at=self._clock() + self.ttl)

        with self._lock.write():
            by_output = self._entries.setdefault(input_token, {})
            by_amount = by_output.setdefault(output_token, {})
            by_amount[amount] = entry

    def __len__(self) -> int:
        """Number of stored entries, expired ones included."""
        with self._lock.read():
            return sum(
                len(by_amount)
                for by_output in self._entries.values()
                for by_amount in by_output.values()
            )
