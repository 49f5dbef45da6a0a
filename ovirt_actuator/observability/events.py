"""Default event recorder."""

from __future__ import annotations

from loguru import logger

from ovirt_actuator.api.model import Machine, Node
from ovirt_actuator.api.protocols import EventType

log = logger.bind(component="events")


class LoggingEventRecorder:
    """Records resource events as log lines.

    Used when the controller runtime does not provide its own recorder.
    """

    def event(self, obj: Machine | Node, event_type: EventType, reason: str, message: str) -> None:
        emit = log.warning if event_type == "Warning" else log.info
        emit(
            "{kind} {name}: {reason} - {message}",
            kind=obj.__class__.__name__, name=obj.name, reason=reason, message=message,
        )
