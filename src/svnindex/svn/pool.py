"""Thread-safe pool of reusable svn client handles.

Handles are created lazily and never discarded. The lock guards only the
idle-list mutation; handle construction and every backend call happen
outside it.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, List, TypeVar

logger = logging.getLogger(__name__)

H = TypeVar("H")


class ClientPool(Generic[H]):
    """Unbounded LIFO pool of client handles built by *factory*.

    ``acquire`` never blocks: if no idle handle exists a new one is
    created. Concurrency is bounded by the caller, not by the pool.
    """

    def __init__(self, factory: Callable[[], H]) -> None:
        self._factory = factory
        self._idle: List[H] = []
        self._lock = threading.Lock()
        self._created = 0

    def acquire(self) -> H:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        handle = self._factory()
        with self._lock:
            self._created += 1
            created = self._created
        logger.debug("Created svn client handle #%d", created)
        return handle

    def release(self, handle: H) -> None:
        with self._lock:
            self._idle.append(handle)

    @contextmanager
    def borrow(self) -> Iterator[H]:
        """Acquire a handle for the duration of a ``with`` block."""
        handle = self.acquire()
        try:
            yield handle
        finally:
            self.release(handle)

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    @property
    def created_count(self) -> int:
        with self._lock:
            return self._created
