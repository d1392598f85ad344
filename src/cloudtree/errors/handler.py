import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from cloudtree.errors import UserCancelledError
from cloudtree.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: BaseException
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedError:
    error_type: str
    message: str
    is_user_cancelled: bool = False


def parse_error(error: Any) -> ParsedError:
    """Normalise anything raised (or rejected with) into a type and message."""
    if isinstance(error, UserCancelledError):
        return ParsedError(type(error).__name__, str(error), is_user_cancelled=True)
    if isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        return ParsedError(type(error).__name__, message)
    if isinstance(error, dict):
        message = error.get("message") or error.get("error") or str(error)
        return ParsedError(str(error.get("code", "Error")), str(message))
    return ParsedError("Error", str(error))


_DISPLAYED = frozenset({ErrorSeverity.ERROR, ErrorSeverity.CRITICAL})


class ErrorHandler:
    """Log a failure, publish it on the bus and show the serious ones.

    The UI callback receives the parsed message rather than the exception so
    hosts never have to know the error taxonomy.
    """

    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._display: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._display = callback

    def handle(self, error: BaseException, severity: ErrorSeverity = ErrorSeverity.ERROR, context: dict = None):
        parsed = parse_error(error)
        details = dict(context or {})

        log = getattr(self._logger, severity.value, self._logger.error)
        log("%s: %s", parsed.error_type, parsed.message, extra={"cloudtree_context": details})

        self._events.publish(ErrorOccurredEvent(error=error, severity=severity, context=details))

        if self._display is not None and severity in _DISPLAYED:
            self._display(parsed.message, severity)
