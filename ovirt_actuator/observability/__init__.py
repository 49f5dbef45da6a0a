from ovirt_actuator.observability.events import LoggingEventRecorder
from ovirt_actuator.observability.logging import (
    LogConfig,
    setup_logging,
    teardown_logging,
)

__all__ = [
    "LogConfig",
    "LoggingEventRecorder",
    "setup_logging",
    "teardown_logging",
]
