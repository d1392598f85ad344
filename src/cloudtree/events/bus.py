import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Type


@dataclass(kw_only=True)
class Event:
    """Base class for everything published on the :class:`EventBus`."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = Event
    handler: Callable = field(default=lambda e: None)
    active: bool = True
    on_cancel: Callable[["Subscription"], None] | None = field(default=None, repr=False)

    def cancel(self):
        if not self.active:
            return
        self.active = False
        if self.on_cancel is not None:
            self.on_cancel(self)


class EventBus:
    """Typed, synchronous publish/subscribe.

    Handlers run on the publishing call stack in subscription order.  A
    failing handler is logged and skipped so the remaining handlers still run.
    """

    def __init__(self, logger: logging.Logger = None):
        self._logger = logger or logging.getLogger(__name__)
        self._handlers: Dict[Type[Event], List[Subscription]] = defaultdict(list)

    def subscribe(self, event_type: Type[Event], handler: Callable) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler, on_cancel=self._remove)
        self._handlers[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription):
        subscription.cancel()
        self._remove(subscription)

    def publish(self, event: Event):
        event_type = type(event)
        for sub in list(self._handlers[event_type]):
            if not sub.active:
                continue
            try:
                sub.handler(event)
            except Exception as e:
                self._logger.error(f"Handler failed for {event_type.__name__}: {e}")

    def subscriber_count(self, event_type: Type[Event]) -> int:
        return len(self._handlers[event_type])

    def _remove(self, subscription: Subscription):
        subs = self._handlers.get(subscription.event_type)
        if not subs:
            return
        try:
            subs.remove(subscription)
        except ValueError:
            pass
