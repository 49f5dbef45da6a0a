"""Controllers reconciling machines and nodes against engine VMs."""

from ovirt_actuator.actuator.machine import MachineActuator
from ovirt_actuator.actuator.provider_id import ProviderIDReconciler, ReconcileResult
from ovirt_actuator.actuator.status import merge_conditions

__all__ = [
    "MachineActuator",
    "ProviderIDReconciler",
    "ReconcileResult",
    "merge_conditions",
]
