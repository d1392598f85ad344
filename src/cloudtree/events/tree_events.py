from dataclasses import dataclass, field

from .bus import Event


@dataclass(kw_only=True)
class ActionTelemetryEvent(Event):
    callback_id: str = ""
    properties: dict[str, str] = field(default_factory=dict)
    measurements: dict[str, float] = field(default_factory=dict)
