from .bus import Event, EventBus, Subscription
from .signal import Signal
from .tree_events import ActionTelemetryEvent

__all__ = [
    "ActionTelemetryEvent",
    "Event",
    "EventBus",
    "Signal",
    "Subscription",
]
