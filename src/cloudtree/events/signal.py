"""Pure Python signal used as the publish/subscribe channel of the tree.

Provides ``Signal`` for observer-pattern callbacks.  Handlers may be plain
callables or coroutine functions; awaitable results are scheduled on the
running event loop so that emitting never blocks the emitter.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from typing import Any, Callable

from .bus import Subscription

_logger = logging.getLogger(__name__)


class Signal:
    """Pure Python signal.

    All handler mutations and emissions are protected by a lock.  Exceptions
    raised by individual handlers are caught and logged so that one failing
    handler does not prevent subsequent handlers from executing (same
    semantics as ``EventBus``).

    A handler is connected at most once; connecting it again returns the
    :class:`Subscription` it already holds.
    """

    def __init__(self) -> None:
        self._connections: dict[Callable, Subscription] = {}
        self._lock = threading.Lock()
        self._pending: set[asyncio.Task] = set()

    def connect(self, handler: Callable) -> Subscription:
        with self._lock:
            existing = self._connections.get(handler)
            if existing is not None:
                return existing
            subscription = Subscription(handler=handler, on_cancel=self._cancel_subscription)
            self._connections[handler] = subscription
            return subscription

    def disconnect(self, handler: Callable) -> None:
        with self._lock:
            subscription = self._connections.pop(handler, None)
        if subscription is None:
            raise ValueError(f"{handler!r} is not connected")
        subscription.active = False

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            handlers = list(self._connections)
        for handler in handlers:
            try:
                result = handler(*args, **kwargs)
            except Exception as exc:
                _logger.error("Signal handler %r failed: %s", handler, exc)
                continue
            if inspect.isawaitable(result):
                self._schedule(handler, result)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def _schedule(self, handler: Callable, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Emitted from synchronous code: run the handler to completion.
            try:
                asyncio.run(_await(awaitable))
            except Exception as exc:
                _logger.error("Signal handler %r failed: %s", handler, exc)
            return

        task = loop.create_task(_await(awaitable))
        self._pending.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._pending.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                _logger.error("Signal handler %r failed: %s", handler, exc)

        task.add_done_callback(_done)

    def _cancel_subscription(self, subscription: Subscription) -> None:
        # A stale handle must not drop a later connection of the same handler.
        with self._lock:
            if self._connections.get(subscription.handler) is subscription:
                del self._connections[subscription.handler]


async def _await(awaitable: Any) -> Any:
    return await awaitable
