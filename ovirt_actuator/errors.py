"""Error hierarchy for the actuator.

Configuration problems, remote call failures and machine-level errors are
kept apart so callers can decide what to record and what to retry.
"""

from __future__ import annotations

from typing import ClassVar


class ActuatorError(Exception):
    """Base class for all actuator errors."""


class ConfigurationError(ActuatorError):
    """Missing or invalid configuration (spec, template, affinity group)."""


class RemoteCallError(ActuatorError):
    """A call to the virtualization API or the resource store failed."""


class NotFoundError(RemoteCallError):
    """The requested remote object does not exist."""


class WaitTimeoutError(RemoteCallError):
    """A bounded wait expired before its condition was met."""


class XMLTagMismatchError(RemoteCallError):
    """The engine answered with an unexpected XML document.

    Raised by session implementations when the response root tag differs
    from the expected one.
    """

    def __init__(self, actual: str, expected: str) -> None:
        super().__init__(f"expected XML tag <{expected}> but got <{actual}>")
        self.actual = actual
        self.expected = expected


class ProvisioningError(RemoteCallError):
    """A post-create provisioning step failed."""

    def __init__(self, step: str, vm_name: str, cause: Exception) -> None:
        super().__init__(f"failed to {step} for VM {vm_name}: {cause}")
        self.step = step
        self.vm_name = vm_name


class VmNotReadyError(ActuatorError):
    """The VM is in a transient state; reconciliation must be retried."""


class MachineError(ActuatorError):
    """Machine-level failure, recorded on the machine status before raising."""

    INVALID_CONFIGURATION: ClassVar[str] = "InvalidConfiguration"
    CREATE: ClassVar[str] = "CreateError"
    UPDATE: ClassVar[str] = "UpdateError"
    DELETE: ClassVar[str] = "DeleteError"

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message

    @classmethod
    def invalid_configuration(cls, message: str) -> MachineError:
        return cls(cls.INVALID_CONFIGURATION, message)

    @classmethod
    def create(cls, message: str) -> MachineError:
        return cls(cls.CREATE, message)

    @classmethod
    def update(cls, message: str) -> MachineError:
        return cls(cls.UPDATE, message)

    @classmethod
    def delete(cls, message: str) -> MachineError:
        return cls(cls.DELETE, message)
