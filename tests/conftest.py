"""Shared fixtures: a virtual-clock scheduler for debounce/defer tests."""

import itertools

import pytest


class _FakeHandle:
    def __init__(self, callback):
        self._callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def run(self):
        if not self.cancelled:
            self.cancelled = True
            self._callback()


class FakeScheduler:
    """Callbacks only run when the test advances the clock."""

    def __init__(self):
        self.now = 0.0
        self._queue = []  # (due, seq, handle)
        self._seq = itertools.count()

    def call_later(self, delay, callback):
        handle = _FakeHandle(callback)
        self._queue.append((self.now + delay, next(self._seq), handle))
        return handle

    def call_soon(self, callback):
        return self.call_later(0, callback)

    @property
    def pending_count(self):
        return sum(1 for _, _, handle in self._queue if not handle.cancelled)

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [e for e in self._queue if e[0] <= target + 1e-9 and not e[2].cancelled]
            if not due:
                break
            entry = min(due, key=lambda e: (e[0], e[1]))
            self._queue.remove(entry)
            self.now = entry[0]
            entry[2].run()
        self.now = target
        self._queue = [e for e in self._queue if not e[2].cancelled]

    def run_pending(self):
        self.advance(0)


@pytest.fixture
def scheduler():
    return FakeScheduler()
