"""Textual integration for listenit. Opt-in — requires textual.

// [LAW:locality-or-seam] Textual coupling isolated in this module — core listenit stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps has single owner (this module), explicit API
//   (pause/is_safe), documented invariant (id present ↔ inside pause context).

TextualScheduler runs debounce()/defer() callbacks on the app's own loop.
listen() attaches a widget-updating effect to a listenable so that it is
skipped while the widget tree is being replaced, tolerates queries for
widgets that are gone, and hops onto the app thread when the notification
comes from a timer thread.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from listenit.scheduling import CallbackHandle

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


class _TimerHandle:
    __slots__ = ("_timer",)

    def __init__(self, timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class TextualScheduler:
    """Scheduler backed by a running Textual App.

    Usage:
        query = ValueNotifier("")
        results = query.debounce(0.3, scheduler=TextualScheduler(app))
    """

    def __init__(self, app):
        self._app = app

    def call_later(self, delay, callback):
        return _TimerHandle(self._app.set_timer(delay, callback))

    def call_soon(self, callback):
        handle = CallbackHandle(callback)
        self._app.call_later(handle)
        return handle


@contextmanager
def pause(app):
    """Suspend guarded listeners during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def listen(app, listenable, effect):
    """listenable.listen() that safely bridges to Textual widgets.

    effect(value) is skipped while the app is paused or not running,
    NoMatches from widget queries is ignored, and calls from other
    threads are marshaled via call_from_thread. Returns the Subscription.
    """
    _main = threading.get_ident()

    def _guarded(value, subscription):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, value)
        else:
            _safe(value)

    def _safe(value):
        try:
            effect(value)
        except NoMatches:
            pass

    return listenable.listen(_guarded)
