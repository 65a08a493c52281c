"""Tests for debounce() and defer() — the operators that go through a Scheduler."""

import asyncio
import threading

import pytest

from listenit import AsyncioScheduler, Notifier, ValueNotifier


class TestDebounce:
    def test_burst_fires_once_with_last_value(self, scheduler):
        source = ValueNotifier(0)
        debounced = source.debounce(0.2, scheduler=scheduler)
        fired = []
        debounced.add_listener(lambda: fired.append((scheduler.now, debounced.value)))

        source.value = 1
        scheduler.advance(0.05)
        source.value = 2
        scheduler.advance(0.05)
        source.value = 3

        scheduler.advance(0.19)
        assert fired == []

        scheduler.advance(0.02)
        assert len(fired) == 1
        when, value = fired[0]
        assert when == pytest.approx(0.3)
        assert value == 3

    def test_takes_value_at_fire_time(self, scheduler):
        source = ValueNotifier(0)
        debounced = source.debounce(0.1, scheduler=scheduler)
        source.value = 1
        # bypass the debounce handler: no new timer, but the value moves on
        source._value = 99
        scheduler.advance(0.1)
        assert debounced.value == 99

    def test_only_one_pending_timer(self, scheduler):
        source = ValueNotifier(0)
        debounced = source.debounce(0.5, scheduler=scheduler)
        for i in range(10):
            source.value = i
        assert scheduler.pending_count == 1
        assert debounced.pending

    def test_separate_bursts(self, scheduler):
        source = ValueNotifier("")
        debounced = source.debounce(0.1, scheduler=scheduler)
        seen = []
        debounced.listen(lambda value, _: seen.append(value))
        source.value = "a"
        scheduler.advance(0.2)
        source.value = "b"
        scheduler.advance(0.2)
        assert seen == ["a", "b"]

    def test_dispose_cancels_pending_timer(self, scheduler):
        source = ValueNotifier(0)
        debounced = source.debounce(0.1, scheduler=scheduler)
        fired = []
        debounced.add_listener(lambda: fired.append(1))
        source.value = 1
        debounced.dispose()
        assert scheduler.pending_count == 0
        scheduler.advance(1)
        assert fired == []
        assert not source.has_listeners

    def test_lazy_subscribes_on_first_listener(self, scheduler):
        source = ValueNotifier(1)
        debounced = source.debounce(0.05, lazy=True, scheduler=scheduler)
        assert not source.has_listeners
        debounced.add_listener(lambda: None)
        assert source.has_listeners

    def test_with_threading_scheduler(self):
        source = ValueNotifier(0)
        debounced = source.debounce(0.05)
        received = []
        done = threading.Event()

        def on_value(value, _):
            received.append(value)
            done.set()

        debounced.listen(on_value)

        # Rapid burst — only the last should fire
        source.value = 1
        source.value = 2
        source.value = 3

        done.wait(timeout=1)
        assert received == [3]


class TestPlainDebounce:
    def test_coalesces_notifications(self, scheduler):
        notifier = Notifier()
        debounced = notifier.debounce(0.1, scheduler=scheduler)
        count = []
        debounced.add_listener(lambda: count.append(1))
        notifier.notify_listeners()
        notifier.notify_listeners()
        notifier.notify_listeners()
        assert count == []
        scheduler.advance(0.15)
        assert count == [1]

    def test_disposed_does_not_fire(self, scheduler):
        notifier = Notifier()
        debounced = notifier.debounce(0.1, scheduler=scheduler)
        count = []
        debounced.add_listener(lambda: count.append(1))
        notifier.notify_listeners()
        scheduler.advance(0.15)
        assert count == [1]
        debounced.dispose()
        notifier.notify_listeners()
        scheduler.advance(0.15)
        assert count == [1]


class TestDefer:
    def test_defers_to_next_turn(self, scheduler):
        source = ValueNotifier(0)
        deferred = source.defer(scheduler=scheduler)
        seen = []
        deferred.listen(lambda value, _: seen.append(value))
        source.value = 42
        assert seen == []
        assert deferred.value == 0
        scheduler.run_pending()
        assert seen == [42]

    def test_coalesces_to_latest(self, scheduler):
        source = ValueNotifier(0)
        deferred = source.defer(scheduler=scheduler)
        seen = []
        deferred.listen(lambda value, _: seen.append(value))
        source.value = 1
        source.value = 2
        source.value = 3
        assert scheduler.pending_count == 1
        scheduler.run_pending()
        assert seen == [3]

    def test_dispose_cancels_deferral(self, scheduler):
        source = ValueNotifier(0)
        deferred = source.defer(scheduler=scheduler)
        source.value = 1
        deferred.dispose()
        scheduler.run_pending()
        assert deferred.value == 0

    def test_lazy(self, scheduler):
        source = ValueNotifier(1)
        deferred = source.defer(lazy=True, scheduler=scheduler)
        assert not source.has_listeners
        deferred.add_listener(lambda: None)
        assert source.has_listeners

    def test_with_asyncio_scheduler(self):
        async def scenario():
            source = ValueNotifier(0)
            deferred = source.defer(scheduler=AsyncioScheduler())
            seen = []
            deferred.listen(lambda value, _: seen.append(value))
            source.value = 42
            assert seen == []
            await asyncio.sleep(0)
            return seen

        assert asyncio.run(scenario()) == [42]

    def test_debounce_with_asyncio_scheduler(self):
        async def scenario():
            source = ValueNotifier(0)
            debounced = source.debounce(0.01, scheduler=AsyncioScheduler())
            seen = []
            debounced.listen(lambda value, _: seen.append(value))
            source.value = 1
            source.value = 2
            await asyncio.sleep(0.05)
            return seen

        assert asyncio.run(scenario()) == [2]


class _IgnoredCancel:
    def cancel(self):
        pass


class _LateCancelScheduler:
    """Keeps every callback; cancel() arrives after the timer thread has started."""

    def __init__(self):
        self.callbacks = []

    def call_later(self, delay, callback):
        self.callbacks.append(callback)
        return _IgnoredCancel()

    def call_soon(self, callback):
        return self.call_later(0, callback)


class TestStaleTimers:
    def test_restarted_debounce_ignores_superseded_timer(self):
        late = _LateCancelScheduler()
        source = ValueNotifier(0)
        debounced = source.debounce(0.2, scheduler=late)
        seen = []
        debounced.listen(lambda value, _: seen.append(value))

        source.value = 1
        source.value = 2
        late.callbacks[0]()
        assert seen == []
        assert debounced.pending

        late.callbacks[1]()
        assert seen == [2]
        assert not debounced.pending

    def test_plain_debounce_ignores_superseded_timer(self):
        late = _LateCancelScheduler()
        notifier = Notifier()
        debounced = notifier.debounce(0.2, scheduler=late)
        count = []
        debounced.add_listener(lambda: count.append(1))

        notifier.notify_listeners()
        notifier.notify_listeners()
        late.callbacks[0]()
        assert count == []
        late.callbacks[1]()
        assert count == [1]

    def test_disposed_defer_ignores_late_callback(self):
        late = _LateCancelScheduler()
        source = ValueNotifier(0)
        deferred = source.defer(scheduler=late)
        source.value = 1
        deferred.dispose()
        late.callbacks[0]()
        assert deferred.value == 0
