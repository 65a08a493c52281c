"""Schedulers — the timer capability behind debounce() and defer().

Operators never create timers themselves. They ask a Scheduler to run a
callback later and keep the returned handle so the pending call can be
cancelled. Pass a scheduler explicitly to debounce()/defer() to pick the
event loop the callbacks run on; the default uses daemon threads.

    ThreadingScheduler  daemon threading.Timer per call (default)
    AsyncioScheduler    call_later/call_soon on an asyncio loop
    TextualScheduler    App.set_timer/App.call_later (see listenit.textual)
"""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Protocol

Callback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs callbacks later on some event loop."""

    def call_later(self, delay: float, callback: Callback) -> Handle:
        """Run callback once after delay seconds."""
        ...

    def call_soon(self, callback: Callback) -> Handle:
        """Run callback on the next turn of the loop."""
        ...


class CallbackHandle:
    """Handle for loops whose native scheduling call cannot be cancelled.

    The wrapped callback checks the flag and does nothing once cancelled.
    """

    __slots__ = ("_callback", "_cancelled")

    def __init__(self, callback: Callback) -> None:
        self._callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __call__(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._callback()


class ThreadingScheduler:
    """Each call gets its own daemon threading.Timer.

    Callbacks run on the timer thread, not the caller's.
    """

    def call_later(self, delay: float, callback: Callback) -> Handle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def call_soon(self, callback: Callback) -> Handle:
        return self.call_later(0, callback)


class AsyncioScheduler:
    """Schedules on an asyncio event loop.

    Without an explicit loop, the loop running at scheduling time is used,
    so operators must be triggered from inside that loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        return asyncio.get_running_loop()

    def call_later(self, delay: float, callback: Callback) -> Handle:
        return self._get_loop().call_later(delay, callback)

    def call_soon(self, callback: Callback) -> Handle:
        return self._get_loop().call_soon(callback)


default_scheduler: Scheduler = ThreadingScheduler()
