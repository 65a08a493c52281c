"""Operator nodes — notifiers derived from other notifiers.

Each node wraps the notifier(s) before it in the chain and installs a
ChainHandler on each of them. When a source notifies, the handler
recomputes the node's value and notifies the node's own listeners, so a
chain updates synchronously, depth first. debounce and defer are the
exceptions: they hand the update to a Scheduler.

Chains are hot. An eager node (lazy=False, the default) subscribes while
it is built; a lazy node subscribes when its first listener is added.
Either way the subscription stays when the last listener goes away, so a
node can lose and regain listeners without missing a change. Only
dispose() unsubscribes.

Usually built through the ValueListenable methods rather than directly:

    source = ValueNotifier(10)
    label = source.where(lambda x: x > 0).map(str)
"""

from __future__ import annotations

import functools
import logging
import threading
from typing import Any, Callable, Generic, Sequence, TypeVar

from listenit.notifier import (
    ChainHandler,
    Listener,
    Notifier,
    ValueListenable,
    ValueNotifier,
)
from listenit.scheduling import Handle, Scheduler, default_scheduler

T = TypeVar("T")
TIn = TypeVar("TIn")
TOut = TypeVar("TOut")

logger = logging.getLogger("listenit.operators")

MIN_COMBINED = 2
MAX_COMBINED = 6


class _Chained:
    """Subscription bookkeeping shared by every operator node.

    Sources are held strongly; each source's listener registry holds the
    node's handlers. dispose() breaks both links.
    """

    _sources: tuple[Notifier, ...]

    def _chain_to(self, sources: Sequence[Notifier], lazy: bool) -> None:
        self._sources = tuple(sources)
        self._handlers: list[ChainHandler] = []
        self._initialized = False
        if not lazy:
            self._init()

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def sources(self) -> tuple[Notifier, ...]:
        return self._sources

    def _init(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        for index, source in enumerate(self._sources):
            handler = ChainHandler(self, index)
            source.add_listener(handler)
            self._handlers.append(handler)
        logger.debug("%r subscribed to %d source(s)", self, len(self._sources))

    def add_listener(self, listener: Listener) -> None:
        self._check_not_disposed("add_listener")
        self._init()
        super().add_listener(listener)

    def dispose(self) -> None:
        if self._disposed:
            return
        for source, handler in zip(self._sources, self._handlers):
            source.remove_listener(handler)
        if self._handlers:
            logger.debug("%r unsubscribed from %d source(s)", self, len(self._handlers))
        self._handlers.clear()
        self._release()
        super().dispose()

    def _release(self) -> None:
        """Free resources owned by the node, e.g. a pending timer."""

    def _on_source_changed(self, index: int) -> None:
        raise NotImplementedError


class _Pending:
    """At most one scheduled call at a time, cancellable from any thread."""

    def __init__(self, scheduler: Scheduler, callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self._callback = callback
        self._lock = threading.Lock()
        self._handle: Handle | None = None
        # bumped on every restart or cancel; a call from an older generation is stale
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._handle is not None

    def restart(self, seconds: float) -> None:
        """Cancel the pending call, if any, and schedule a new one."""
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                logger.debug("Cancelled pending call to %r", self._callback)
            self._generation += 1
            run = functools.partial(self._run, self._generation)
            self._handle = self._scheduler.call_later(seconds, run)

    def ensure(self) -> None:
        """Schedule a call for the next turn unless one is pending."""
        with self._lock:
            if self._handle is None:
                self._generation += 1
                run = functools.partial(self._run, self._generation)
                self._handle = self._scheduler.call_soon(run)

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None

    def _run(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
        self._callback()


class FunctionalValueNotifier(_Chained, ValueNotifier[TOut], Generic[TIn, TOut]):
    """Base for operators with a single source.

    initial_value is computed by the caller from the source's current
    value; the node never computes its first value itself.
    """

    def __init__(
        self,
        initial_value: TOut,
        previous_in_chain: ValueListenable[TIn],
        *,
        lazy: bool = False,
    ) -> None:
        super().__init__(initial_value)
        self._chain_to([previous_in_chain], lazy)

    @property
    def previous_in_chain(self) -> ValueListenable[TIn]:
        return self._sources[0]


class MapValueNotifier(FunctionalValueNotifier[TIn, TOut]):
    def __init__(
        self,
        initial_value: TOut,
        previous_in_chain: ValueListenable[TIn],
        transformation: Callable[[TIn], TOut],
        *,
        lazy: bool = False,
    ) -> None:
        self.transformation = transformation
        super().__init__(initial_value, previous_in_chain, lazy=lazy)

    def _on_source_changed(self, index: int) -> None:
        self.value = self.transformation(self.previous_in_chain.value)


class SelectValueNotifier(FunctionalValueNotifier[TIn, TOut]):
    def __init__(
        self,
        initial_value: TOut,
        previous_in_chain: ValueListenable[TIn],
        selector: Callable[[TIn], TOut],
        *,
        lazy: bool = False,
    ) -> None:
        self.selector = selector
        super().__init__(initial_value, previous_in_chain, lazy=lazy)

    def _on_source_changed(self, index: int) -> None:
        selected = self.selector(self.previous_in_chain.value)
        if selected != self.value:
            self.value = selected


class WhereValueNotifier(FunctionalValueNotifier[T, T]):
    def __init__(
        self,
        initial_value: T,
        previous_in_chain: ValueListenable[T],
        selector: Callable[[T], bool],
        *,
        lazy: bool = False,
    ) -> None:
        self.selector = selector
        super().__init__(initial_value, previous_in_chain, lazy=lazy)

    def _on_source_changed(self, index: int) -> None:
        value = self.previous_in_chain.value
        if self.selector(value):
            self.value = value


class DebouncedValueNotifier(FunctionalValueNotifier[T, T]):
    """Takes the source's value when the timer fires, not when it was set."""

    def __init__(
        self,
        initial_value: T,
        previous_in_chain: ValueListenable[T],
        seconds: float,
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.seconds = seconds
        self._pending = _Pending(scheduler or default_scheduler, self._fire)
        super().__init__(initial_value, previous_in_chain, lazy=lazy)

    @property
    def pending(self) -> bool:
        return self._pending.active

    def _on_source_changed(self, index: int) -> None:
        self._pending.restart(self.seconds)

    def _fire(self) -> None:
        if not self._disposed:
            self.value = self.previous_in_chain.value

    def _release(self) -> None:
        self._pending.cancel()


class AsyncValueNotifier(FunctionalValueNotifier[T, T]):
    """Moves updates to the next turn of the scheduler's loop.

    Changes arriving before that turn share one deferred update.
    """

    def __init__(
        self,
        initial_value: T,
        previous_in_chain: ValueListenable[T],
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._pending = _Pending(scheduler or default_scheduler, self._flush)
        super().__init__(initial_value, previous_in_chain, lazy=lazy)

    @property
    def pending(self) -> bool:
        return self._pending.active

    def _on_source_changed(self, index: int) -> None:
        self._pending.ensure()

    def _flush(self) -> None:
        if not self._disposed:
            self.value = self.previous_in_chain.value

    def _release(self) -> None:
        self._pending.cancel()


class CombiningValueNotifier(_Chained, ValueNotifier[TOut]):
    """combine_latest over two to six sources."""

    def __init__(
        self,
        initial_value: TOut,
        sources: Sequence[ValueListenable[Any]],
        combiner: Callable[..., TOut],
        *,
        lazy: bool = False,
    ) -> None:
        if not MIN_COMBINED <= len(sources) <= MAX_COMBINED:
            raise ValueError(
                f"combine_latest takes {MIN_COMBINED} to {MAX_COMBINED} sources, "
                f"got {len(sources)}"
            )
        self.combiner = combiner
        super().__init__(initial_value)
        self._chain_to(sources, lazy)

    def _on_source_changed(self, index: int) -> None:
        self.value = self.combiner(*(source.value for source in self._sources))


class MergingValueNotifier(_Chained, ValueNotifier[T]):
    """Takes the value of whichever source notified, unchanged."""

    def __init__(
        self,
        previous_in_chain: ValueListenable[T],
        others: Sequence[ValueListenable[T]],
        initial_value: T,
        *,
        lazy: bool = False,
    ) -> None:
        super().__init__(initial_value)
        self._chain_to([previous_in_chain, *others], lazy)

    def _on_source_changed(self, index: int) -> None:
        self.value = self._sources[index].value


class DebouncedNotifier(_Chained, Notifier):
    """debounce() for a notifier without a value."""

    def __init__(
        self,
        previous_in_chain: Notifier,
        seconds: float,
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        super().__init__()
        self.seconds = seconds
        self._pending = _Pending(scheduler or default_scheduler, self._fire)
        self._chain_to([previous_in_chain], lazy)

    @property
    def pending(self) -> bool:
        return self._pending.active

    def _on_source_changed(self, index: int) -> None:
        self._pending.restart(self.seconds)

    def _fire(self) -> None:
        if not self._disposed:
            self.notify_listeners()

    def _release(self) -> None:
        self._pending.cancel()
