"""TTL cache for analysis results.

Entries expire ``ttl_seconds`` after they were stored. The clock is injected
so expiry can be driven from tests without sleeping.
"""

import hashlib
import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Hashable, Optional

import numpy as np
import pandas as pd

from commodity_analytics.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TTL = 5 * 60  # 5 minutes
DEFAULT_MAX_ENTRIES = 256


def series_fingerprint(df: pd.DataFrame) -> str:
    """Digest of a normalized price frame's dates and values."""
    digest = hashlib.sha256()
    digest.update(df.index.asi8.tobytes())
    digest.update(np.ascontiguousarray(df["value"].to_numpy(dtype=float)).tobytes())
    return digest.hexdigest()


def config_fingerprint(config: Any) -> str:
    """Short digest of an engine config's repr, used in cache keys."""
    return hashlib.sha256(repr(config).encode("utf-8")).hexdigest()[:16]


class AnalysisCache:
    """Thread-safe result cache with time-based expiry.

    Keys are ``(commodity, kind, fingerprint, *params)`` tuples built by
    ``make_key``. When full, the oldest entry is evicted.

    Example:
        cache = AnalysisCache(ttl_seconds=60)
        key = cache.make_key("soja", "forecast", fingerprint, 7)
        prediction = cache.get_or_compute(key, lambda: predictor.predict(df, 7))
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")

        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._lock = Lock()
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()  # key -> (expires_at, value)
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(commodity: str, kind: str, fingerprint: str, *params: Hashable) -> tuple:
        return (commodity, kind, fingerprint, *params)

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None

            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + self._ttl, value)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted {evicted!r:.80}")

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the cached value, computing and storing it on a miss.

        ``compute`` runs outside the lock; exceptions propagate and nothing
        is stored.
        """
        value = self.get(key)
        if value is not None:
            return value

        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, commodity: Optional[str] = None) -> int:
        """Drop entries for one commodity, or all entries when None.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if commodity is None:
                removed = len(self._entries)
                self._entries.clear()
            else:
                keys = [
                    k for k in self._entries
                    if isinstance(k, tuple) and k and k[0] == commodity
                ]
                for k in keys:
                    del self._entries[k]
                removed = len(keys)

        if removed:
            logger.info(f"Invalidated {removed} cached analyses ({commodity or 'all'})")
        return removed

    def purge_expired(self) -> int:
        """Remove expired entries; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
