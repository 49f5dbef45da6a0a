"""oVirt machine actuator.

Creates, starts, inspects and deletes the oVirt VMs backing cluster machine
resources, and keeps node provider ids in line with them.

Example:

    from ovirt_actuator import ConnectionProvider, MachineActuator

    connections = ConnectionProvider(secrets, session_factory)
    actuator = MachineActuator(connections, secrets, machines, infrastructure)

    if not actuator.exists(machine):
        actuator.create(machine)
    else:
        actuator.update(machine)
"""

from ovirt_actuator.actuator import (
    MachineActuator,
    ProviderIDReconciler,
    ReconcileResult,
)
from ovirt_actuator.api import (
    Credentials,
    Instance,
    Machine,
    Node,
    OvirtMachineProviderSpec,
    OvirtMachineProviderStatus,
    VmStatus,
)
from ovirt_actuator.config import ActuatorConfig, load_config
from ovirt_actuator.connection import ConnectionProvider
from ovirt_actuator.errors import (
    ActuatorError,
    ConfigurationError,
    MachineError,
    NotFoundError,
    ProvisioningError,
    RemoteCallError,
    VmNotReadyError,
    WaitTimeoutError,
    XMLTagMismatchError,
)
from ovirt_actuator.observability import LogConfig, LoggingEventRecorder, setup_logging, teardown_logging
from ovirt_actuator.wait import Poll, PollWaiter

__all__ = [
    "ActuatorConfig",
    "ActuatorError",
    "ConfigurationError",
    "ConnectionProvider",
    "Credentials",
    "Instance",
    "LogConfig",
    "LoggingEventRecorder",
    "Machine",
    "MachineActuator",
    "MachineError",
    "Node",
    "NotFoundError",
    "OvirtMachineProviderSpec",
    "OvirtMachineProviderStatus",
    "Poll",
    "PollWaiter",
    "ProviderIDReconciler",
    "ProvisioningError",
    "ReconcileResult",
    "RemoteCallError",
    "VmNotReadyError",
    "VmStatus",
    "WaitTimeoutError",
    "XMLTagMismatchError",
    "load_config",
    "setup_logging",
    "teardown_logging",
]
