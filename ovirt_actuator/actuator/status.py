"""Write-back of observed VM state onto the machine resource.

Each function mutates the in-memory machine only; the caller persists the
result with a single update once every step has run.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from loguru import logger

from ovirt_actuator.api.model import Instance, Machine, NodeAddress, VmStatus
from ovirt_actuator.api.protocols import InfrastructureStore
from ovirt_actuator.api.spec import Condition, OvirtMachineProviderStatus
from ovirt_actuator.constants import (
    INSTANCE_STATE_ANNOTATION_KEY,
    PROVIDER_ID_PREFIX,
    VM_ID_ANNOTATION_KEY,
)
from ovirt_actuator.errors import RemoteCallError, VmNotReadyError
from ovirt_actuator.vm.addresses import IPDiscoverer

log = logger.bind(component="status")

# VMs only report addresses in these states
_ADDRESSABLE = frozenset({VmStatus.UP, VmStatus.MIGRATING})


def reconcile_provider_id(machine: Machine, vm: Instance) -> None:
    machine.spec.provider_id = PROVIDER_ID_PREFIX + vm.id
    machine.annotations[VM_ID_ANNOTATION_KEY] = vm.id


def reconcile_network(
    machine: Machine,
    vm: Instance,
    discoverer: IPDiscoverer,
    infrastructure: InfrastructureStore,
) -> None:
    """Set the machine addresses from the guest-reported IP.

    A ``down`` VM keeps its current addresses. Any state other than ``up``,
    ``migrating`` or ``down`` aborts the reconciliation: nothing notifies the
    controller when the VM settles, so the error forces a retry.

    Raises:
        VmNotReadyError: If the VM is in a transient state.
        RemoteCallError: If the reserved addresses or the VM IP cannot be read.
    """
    if vm.status == VmStatus.DOWN:
        return
    if vm.status not in _ADDRESSABLE:
        raise VmNotReadyError(
            f"aborting reconciliation while VM {vm.name} state is {vm.status}"
        )

    try:
        excluded = infrastructure.get_cluster_infrastructure().reserved_addresses
    except Exception as e:
        raise RemoteCallError(f"failed to retrieve cluster infrastructure: {e}") from e

    ip = discoverer.find_address(vm.id, excluded)
    log.debug("Received IP address {ip} for VM {vm}", ip=ip, vm=vm.name)
    machine.status.addresses = [
        NodeAddress(type="InternalDNS", address=vm.name),
        NodeAddress(type="InternalIP", address=ip),
    ]


def reconcile_annotations(machine: Machine, vm: Instance) -> None:
    machine.annotations[INSTANCE_STATE_ANNOTATION_KEY] = str(vm.status)


def reconcile_provider_status(
    machine: Machine,
    vm: Instance,
    condition: Condition,
    now: datetime | None = None,
) -> None:
    status = OvirtMachineProviderStatus.from_raw(machine.status.provider_status)
    status.instance_id = vm.id
    status.instance_state = str(vm.status)
    status.conditions = merge_conditions(status.conditions, condition, now)
    machine.status.provider_status = status.to_raw()


def merge_conditions(
    conditions: Sequence[Condition],
    new: Condition,
    now: datetime | None = None,
) -> list[Condition]:
    """Merge ``new`` into ``conditions``, keeping one condition per type.

    - A type not yet present is appended with fresh probe and transition times.
    - A stored condition with the same reason and message is left alone.
    - Otherwise the stored condition takes the new status, reason and message;
      its transition time only moves when the status itself changed.
    """
    now = now or datetime.now(UTC)
    merged = list(conditions)

    for i, current in enumerate(merged):
        if current.type != new.type:
            continue
        if current.reason == new.reason and current.message == new.message:
            return merged
        transition = now if current.status != new.status else current.last_transition_time
        merged[i] = current.model_copy(
            update={
                "status": new.status,
                "reason": new.reason,
                "message": new.message,
                "last_probe_time": now,
                "last_transition_time": transition,
            }
        )
        return merged

    merged.append(new.model_copy(update={"last_probe_time": now, "last_transition_time": now}))
    return merged
