"""Lazy model construction and per-model inference serialization.

Models are expensive to build, so they are created on first use and cached.
Concurrent first callers share one in-flight construction; a failed
construction is not cached and the next call retries.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SingleFlightProvider(Generic[T]):
    """Thread-safe memoized factory with single-flight initialization."""

    def __init__(self, factory: Callable[[], T], *, name: str | None = None) -> None:
        self._factory = factory
        self.name = name or getattr(factory, "__name__", "model")
        self._lock = threading.Lock()
        self._value: T | None = None
        self._loaded = False
        self._inflight: Future[T] | None = None

    @property
    def loaded(self) -> bool:
        with self._lock:
            return self._loaded

    def get(self) -> T:
        """Return the cached value, building it once if needed."""

        with self._lock:
            if self._loaded:
                return self._value  # type: ignore[return-value]
            if self._inflight is not None:
                future = self._inflight
                owner = False
            else:
                future = Future()
                self._inflight = future
                owner = True

        if not owner:
            return future.result()

        logger.info("Initializing %s", self.name)
        try:
            value = self._factory()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            future.set_exception(exc)
            logger.warning("Initialization of %s failed: %s", self.name, exc)
            raise

        with self._lock:
            self._value = value
            self._loaded = True
            self._inflight = None
        future.set_result(value)
        logger.info("%s ready", self.name)
        return value

    def preload(self) -> threading.Thread | None:
        """Start initialization on a background thread if not started yet."""

        with self._lock:
            if self._loaded or self._inflight is not None:
                return None
        thread = threading.Thread(
            target=self._preload, name=f"preload-{self.name}", daemon=True
        )
        thread.start()
        return thread

    def reset(self) -> None:
        """Drop the cached value; the next `get()` builds a new one."""

        with self._lock:
            self._value = None
            self._loaded = False

    def _preload(self) -> None:
        try:
            self.get()
        except Exception:
            # Failure is not cached; the next get() retries and raises.
            logger.exception("Background preload of %s failed", self.name)


class AsyncSingleFlightProvider(Generic[T]):
    """asyncio single-flight factory; the factory may be sync or async."""

    def __init__(
        self,
        factory: Callable[[], T] | Callable[[], Awaitable[T]],
        *,
        name: str | None = None,
    ) -> None:
        self._factory = factory
        self.name = name or getattr(factory, "__name__", "model")
        self._value: T | None = None
        self._loaded = False
        self._task: asyncio.Task[T] | None = None

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def get(self) -> T:
        if self._loaded:
            return self._value  # type: ignore[return-value]
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self._build())
        task = self._task
        try:
            value = await asyncio.shield(task)
        finally:
            if task.done() and self._task is task:
                self._task = None
        return value

    def reset(self) -> None:
        self._value = None
        self._loaded = False

    async def _build(self) -> T:
        logger.info("Initializing %s", self.name)
        if inspect.iscoroutinefunction(self._factory):
            value = await self._factory()
        else:
            value = await asyncio.to_thread(self._factory)
        self._value = value
        self._loaded = True
        logger.info("%s ready", self.name)
        return value


class ModelWorker:
    """Single worker thread serializing calls into one model instance."""

    def __init__(self, name: str = "model") -> None:
        self.name = name
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        return self._executor.submit(fn, *args, **kwargs)

    def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run `fn` on the worker thread and block for its result."""

        return self.submit(fn, *args, **kwargs).result()

    async def arun(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Await `fn` on the worker thread without blocking the event loop."""

        return await asyncio.wrap_future(self.submit(fn, *args, **kwargs))

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
