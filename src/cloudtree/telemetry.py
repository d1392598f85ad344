"""Run an operation while recording telemetry and applying an error policy.

The wrapped callback receives an :class:`ActionContext`.  It may add
properties and measurements to it and flip its flags:

``suppress_error_display``
    The caller renders its own fallback, so the error handler is not asked to
    display the failure.
``rethrow_error``
    The failure is raised again after being recorded instead of being
    swallowed here.
``suppress_telemetry``
    Nothing is sent to the reporter.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from .errors.handler import ErrorHandler, ErrorSeverity, parse_error
from .events.bus import EventBus
from .events.tree_events import ActionTelemetryEvent
from .interfaces import ITelemetryReporter

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

RESULT_SUCCEEDED = "Succeeded"
RESULT_FAILED = "Failed"
RESULT_CANCELED = "Canceled"


@dataclass
class ActionContext:
    properties: dict[str, str] = field(default_factory=dict)
    measurements: dict[str, float] = field(default_factory=dict)
    suppress_error_display: bool = False
    rethrow_error: bool = False
    suppress_telemetry: bool = False


async def call_with_telemetry_and_error_handling(
    callback_id: str,
    callback: Callable[[ActionContext], Awaitable[T]],
    *,
    reporter: Optional[ITelemetryReporter] = None,
    error_handler: Optional[ErrorHandler] = None,
) -> Optional[T]:
    context = ActionContext()
    context.properties["result"] = RESULT_SUCCEEDED
    start = time.monotonic()
    try:
        return await callback(context)
    except Exception as exc:
        parsed = parse_error(exc)
        if parsed.is_user_cancelled:
            context.properties["result"] = RESULT_CANCELED
        else:
            context.properties["result"] = RESULT_FAILED
            context.properties["error"] = parsed.error_type
            context.properties["error_message"] = parsed.message
            if not context.suppress_error_display:
                if error_handler is not None:
                    error_handler.handle(exc, ErrorSeverity.ERROR, {"callback_id": callback_id})
                else:
                    LOGGER.warning("%s failed: %s", callback_id, parsed.message)

        if context.rethrow_error:
            raise
        return None
    finally:
        context.measurements["duration"] = time.monotonic() - start
        if reporter is not None and not context.suppress_telemetry:
            reporter.send_event(callback_id, dict(context.properties), dict(context.measurements))


class EventBusTelemetryReporter(ITelemetryReporter):
    """Forward telemetry records onto an :class:`EventBus`."""

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    def send_event(self, event_name: str, properties: dict[str, str], measurements: dict[str, float]) -> None:
        self._event_bus.publish(
            ActionTelemetryEvent(
                callback_id=event_name,
                properties=properties,
                measurements=measurements,
            )
        )


__all__ = [
    "ActionContext",
    "EventBusTelemetryReporter",
    "RESULT_CANCELED",
    "RESULT_FAILED",
    "RESULT_SUCCEEDED",
    "call_with_telemetry_and_error_handling",
]
