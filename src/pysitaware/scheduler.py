"""Asyncio periodic scheduler for aggregation and purge sweeps."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

_logger = logging.getLogger(__name__)

PeriodicCallback = Callable[[], Awaitable[Any] | Any]


class PeriodicHandle:
    """A registered periodic callback.

    Once :meth:`cancel` returns, the callback will not run again.
    """

    def __init__(self, name: str, callback: PeriodicCallback, interval_s: float) -> None:
        self.name = name
        self.interval_s = interval_s
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self.runs = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def _start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"periodic:{self.name}")

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self.interval_s)
            if self._cancelled:
                return
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                _logger.warning("Periodic callback %s failed", self.name, exc_info=True)
            self.runs += 1

    async def cancel(self) -> None:
        """Stop the callback and wait until its task has finished."""
        self._cancelled = True
        task = self._task
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


class PeriodicScheduler:
    """Runs registered callbacks at fixed intervals on the running event loop.

    Usage::

        scheduler = PeriodicScheduler()
        handle = scheduler.register("sweep", aggregator_sweep, 60.0)
        ...
        await scheduler.shutdown()
    """

    def __init__(self) -> None:
        self._handles: dict[str, PeriodicHandle] = {}
        self._closed = False

    def register(self, name: str, callback: PeriodicCallback, interval_s: float) -> PeriodicHandle:
        """Start calling *callback* every *interval_s* seconds (first call after one interval)."""
        if self._closed:
            raise RuntimeError("scheduler is shut down")
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        self._prune()
        if name in self._handles:
            raise ValueError(f"periodic callback {name!r} already registered")
        handle = PeriodicHandle(name, callback, interval_s)
        handle._start()  # noqa: SLF001
        self._handles[name] = handle
        _logger.debug("Registered periodic callback %s every %.1fs", name, interval_s)
        return handle

    async def unregister(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        if handle is not None:
            await handle.cancel()
            _logger.debug("Unregistered periodic callback %s", name)

    def names(self) -> list[str]:
        self._prune()
        return list(self._handles)

    def _prune(self) -> None:
        # Drop handles whose task has finished, e.g. after PeriodicHandle.cancel().
        for name, handle in list(self._handles.items()):
            if not handle.active:
                del self._handles[name]

    async def shutdown(self) -> None:
        """Cancel every callback; nothing registered here runs after this returns."""
        self._closed = True
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            await handle.cancel()
