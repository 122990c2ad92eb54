"""Single-flight cache for the process-wide release table."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A loaded value and when it was loaded."""

    value: T
    created_at: float = field(default_factory=time.time)


class SingleFlightCache(Generic[T]):
    """Holds one lazily loaded value for the life of an invocation.

    The first caller of get_or_load() runs the loader while holding the
    lock; concurrent callers wait on the same lock and then see the value
    it produced, so the loader runs at most once. A loader that raises
    leaves the cache empty and the error propagates to its caller.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry[T]] = None
        self._loads = 0

    @property
    def loaded(self) -> bool:
        return self._entry is not None

    @property
    def load_count(self) -> int:
        """How many times a loader actually ran (successful or not)."""
        return self._loads

    def get(self) -> Optional[T]:
        entry = self._entry
        return entry.value if entry is not None else None

    def get_or_load(self, loader: Callable[[], T]) -> T:
        """Return the cached value, running `loader` once if needed."""
        entry = self._entry
        if entry is not None:
            return entry.value
        with self._lock:
            if self._entry is None:
                self._loads += 1
                self._entry = CacheEntry(value=loader())
            return self._entry.value

    def clear(self) -> None:
        """Drop the cached value."""
        with self._lock:
            self._entry = None
