"""Single-threaded affinity context for host engine access.

All host interaction happens on one dedicated worker thread. Callers enter the
context with ``async with affinity.enter() as session`` which also serializes
whole operations (one search or symbol walk at a time), then hop each host call
onto the worker with ``await session.run(fn, ...)``. The event loop is never
blocked while a host call runs.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AffinitySession:
    """Exclusive handle on the affinity context for one operation."""

    def __init__(self, affinity: "HostAffinity") -> None:
        self._affinity = affinity
        self._open = True

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        if not self._open:
            raise RuntimeError("Affinity session already released")
        return await self._affinity._dispatch(fn, *args, **kwargs)

    def _release(self) -> None:
        self._open = False


class HostAffinity:
    """Owns the worker thread that is allowed to touch the host."""

    def __init__(self, name: str = "host-affinity") -> None:
        self.name = name
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=name, initializer=self._mark_thread
        )
        self._thread_id: Optional[int] = None
        self._lock: Optional[asyncio.Lock] = None
        self._closed = False

    def _mark_thread(self) -> None:
        self._thread_id = threading.get_ident()

    @property
    def thread_id(self) -> Optional[int]:
        return self._thread_id

    def is_on_context(self) -> bool:
        return self._thread_id is not None and threading.get_ident() == self._thread_id

    def assert_on_context(self) -> None:
        """Raise unless called from the affinity thread."""
        if not self.is_on_context():
            raise RuntimeError(
                f"Host access from thread {threading.current_thread().name!r} "
                f"outside the {self.name!r} affinity context"
            )

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @asynccontextmanager
    async def enter(self) -> AsyncIterator[AffinitySession]:
        """Acquire the context for one operation; always released on exit."""
        if self._closed:
            raise RuntimeError(f"Affinity context {self.name!r} is shut down")
        lock = self._get_lock()
        async with lock:
            session = AffinitySession(self)
            try:
                yield session
            finally:
                session._release()

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a single host call under the context lock."""
        async with self.enter() as session:
            return await session.run(fn, *args, **kwargs)

    async def _dispatch(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        logger.info("Affinity context %s shut down", self.name)


__all__ = ["HostAffinity", "AffinitySession"]
