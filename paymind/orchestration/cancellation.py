"""Cooperative cancellation shared by every awaited call of one workflow run."""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class WorkflowCancelled(Exception):
    """Raised at a suspension point once the run's token has been cancelled."""


class CancellationToken:
    """One-shot cancel signal, safe to fire from any thread.

    ``run`` and ``sleep`` are the only suspension points of a workflow. Both
    race their work against the signal, so cancelling interrupts the await
    immediately. A blocking call already executing in a worker thread is
    left to finish and its result is discarded.
    """

    def __init__(self) -> None:
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled.set()
            loop, event = self._loop, self._event
        if loop is not None and event is not None and not loop.is_closed():
            loop.call_soon_threadsafe(event.set)

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise WorkflowCancelled()

    def _bind(self) -> asyncio.Event:
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._loop is not loop or self._event is None:
                self._loop = loop
                self._event = asyncio.Event()
            if self._cancelled.is_set():
                self._event.set()
            return self._event

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking callable in a worker thread unless cancelled first."""
        self.raise_if_cancelled()
        event = self._bind()
        work = asyncio.ensure_future(asyncio.to_thread(fn, *args, **kwargs))
        waiter = asyncio.ensure_future(event.wait())
        try:
            done, _pending = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        if work in done:
            return work.result()
        work.cancel()
        raise WorkflowCancelled()

    async def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        event = self._bind()
        try:
            await asyncio.wait_for(event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise WorkflowCancelled()
