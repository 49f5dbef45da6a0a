"""Machine lifecycle: exists, create, update and delete.

Each entry point resolves the provider spec and an engine session for the
machine, then drives the VM layer and writes the observed state back onto
the machine resource. Failures worth surfacing to users are recorded on the
machine status as machine errors before being raised.
"""

from __future__ import annotations

from copy import deepcopy

from loguru import logger

from ovirt_actuator.actuator.status import (
    merge_conditions,
    reconcile_annotations,
    reconcile_network,
    reconcile_provider_id,
    reconcile_provider_status,
)
from ovirt_actuator.api.model import Instance, Machine, VmStatus
from ovirt_actuator.api.protocols import (
    EventRecorder,
    InfrastructureStore,
    MachineStore,
    SecretStore,
    VirtualizationSession,
)
from ovirt_actuator.api.spec import (
    Condition,
    OvirtMachineProviderSpec,
    OvirtMachineProviderStatus,
    condition_failed,
    condition_success,
)
from ovirt_actuator.connection import ConnectionProvider
from ovirt_actuator.constants import INSTANCE_STATUS_INTERVAL, INSTANCE_STATUS_TIMEOUT
from ovirt_actuator.errors import (
    ActuatorError,
    ConfigurationError,
    MachineError,
    RemoteCallError,
)
from ovirt_actuator.observability.events import LoggingEventRecorder
from ovirt_actuator.vm.addresses import IPDiscoverer
from ovirt_actuator.vm.directory import InstanceDirectory
from ovirt_actuator.vm.provisioner import InstanceProvisioner
from ovirt_actuator.vm.terminator import InstanceTerminator
from ovirt_actuator.wait import PollWaiter, pending_on_error

log = logger.bind(component="actuator")


class MachineActuator:
    """Reconciles machine resources against engine VMs.

    Args:
        connections: Shared, cached engine session provider.
        secrets: Store holding user data secrets.
        machines: Store the machine resource and its status are written to.
        infrastructure: Source of the control plane's reserved addresses.
        events: Recorder for lifecycle events; logs them when not given.
        waiter: Poller used for every wait.
    """

    def __init__(
        self,
        connections: ConnectionProvider,
        secrets: SecretStore,
        machines: MachineStore,
        infrastructure: InfrastructureStore,
        events: EventRecorder | None = None,
        waiter: PollWaiter | None = None,
    ) -> None:
        self._connections = connections
        self._secrets = secrets
        self._machines = machines
        self._infrastructure = infrastructure
        self._events = events or LoggingEventRecorder()
        self._waiter = waiter or PollWaiter()

    # =========================================================================
    # Entry points
    # =========================================================================

    def exists(self, machine: Machine) -> bool:
        log.info("Checking machine {name} exists", name=machine.name)
        _, session = self._prepare(machine)
        return InstanceDirectory(session, machine.name).get_by_machine(machine) is not None

    def create(self, machine: Machine) -> Instance:
        """Create, start and record the VM for ``machine``.

        Creation is skipped when a VM with the machine's name already exists,
        so a repeated trigger never produces a second VM.

        Returns:
            The existing VM, or the newly created one in state ``up``.

        Raises:
            MachineError: If the provider spec is invalid or creation fails.
            VmNotReadyError: If the new VM left ``up`` before its status was
                recorded.
            RemoteCallError: If the lookup or the status write-back fails.
        """
        spec, session = self._prepare(machine)
        directory = InstanceDirectory(session, machine.name)

        existing = directory.get_by_name()
        if existing is not None:
            log.info("Skipped creating VM {name}, it already exists", name=machine.name)
            return existing

        try:
            vm = InstanceProvisioner(session, self._secrets, self._waiter).create(machine, spec)
            vm = self._start(session, directory, vm)
        except ActuatorError as e:
            raise self._machine_error(
                machine,
                MachineError.create(f"error creating oVirt VM: {e}"),
                condition_failed(),
            ) from e

        self._events.event(machine, "Normal", "Created", f"Created Machine {machine.name}")
        self._patch_machine(session, machine, vm, condition_success())
        return vm

    def update(self, machine: Machine) -> None:
        """Refresh the machine resource from its VM.

        Raises:
            MachineError: If the provider spec is invalid, the VM lookup fails or the
                VM does not exist.
            VmNotReadyError: If the VM is in a transient state.
            RemoteCallError: If the status write-back fails.
        """
        _, session = self._prepare(machine)
        directory = InstanceDirectory(session, machine.name)

        by = "id" if machine.spec.provider_id else "name"
        try:
            if machine.spec.provider_id:
                vm = directory.get_by_machine(machine)
            else:
                vm = directory.get_by_name()
        except ActuatorError as e:
            raise self._machine_error(
                machine, MachineError.invalid_configuration(f"Cannot find a VM by {by}: {e}")
            ) from e

        if vm is None:
            raise self._machine_error(
                machine, MachineError.update(f"VM for machine {machine.name} does not exist")
            )

        self._patch_machine(session, machine, vm, condition_success())

    def delete(self, machine: Machine) -> None:
        _, session = self._prepare(machine)

        vm = InstanceDirectory(session, machine.name).get_by_machine(machine)
        if vm is None:
            log.info("Skipped deleting VM {name}, it is already deleted", name=machine.name)
            return

        try:
            InstanceTerminator(session, self._waiter).delete(vm.id)
        except ActuatorError as e:
            raise self._machine_error(
                machine, MachineError.delete(f"error deleting oVirt VM: {e}")
            ) from e

        self._events.event(machine, "Normal", "Deleted", f"Deleted Machine {machine.name}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _prepare(self, machine: Machine) -> tuple[OvirtMachineProviderSpec, VirtualizationSession]:
        try:
            spec = OvirtMachineProviderSpec.from_raw(machine.spec.provider_spec)
        except ConfigurationError as e:
            raise self._machine_error(
                machine,
                MachineError.invalid_configuration(f"Cannot unmarshal providerSpec field: {e}"),
            ) from e

        session = self._connections.get_connection(machine.namespace, spec.credentials_secret.name)
        return spec, session

    def _start(
        self,
        session: VirtualizationSession,
        directory: InstanceDirectory,
        vm: Instance,
    ) -> Instance:
        def wait_for(status: VmStatus) -> None:
            self._waiter.wait(
                INSTANCE_STATUS_INTERVAL,
                INSTANCE_STATUS_TIMEOUT,
                pending_on_error(
                    lambda: directory.get_by_id(vm.id),
                    lambda current: current.status == status,
                ),
                description=f"VM {vm.name} to be {status}",
            )

        wait_for(VmStatus.DOWN)
        try:
            session.start_vm(vm.id)
        except Exception as e:
            raise RemoteCallError(f"failed to start VM {vm.name}: {e}") from e
        wait_for(VmStatus.UP)

        return directory.get_by_id(vm.id)

    def _patch_machine(
        self,
        session: VirtualizationSession,
        machine: Machine,
        vm: Instance,
        condition: Condition,
    ) -> None:
        """Write the VM state onto the machine and persist it."""
        reconcile_provider_id(machine, vm)
        log.debug("Machine {name} VM status is {status}", name=machine.name, status=vm.status)

        reconcile_network(machine, vm, IPDiscoverer(session), self._infrastructure)
        reconcile_annotations(machine, vm)
        reconcile_provider_status(machine, vm, condition)

        try:
            updated = self._persist(machine)
        except ActuatorError:
            raise
        except Exception as e:
            raise RemoteCallError(f"failed to update machine {machine.name}: {e}") from e

        self._events.event(updated, "Normal", "Update", f"Updated Machine {updated.name}")

    def _persist(self, machine: Machine) -> Machine:
        """Save the machine resource, then its status sub-resource.

        The resource update does not carry the status sub-resource, so the
        status is saved before it and written back with a second call.
        """
        status = deepcopy(machine.status)
        log.info("Updating machine resource {name}", name=machine.name)
        updated = self._machines.update(machine)
        updated.status = status
        log.info("Updating machine status sub-resource {name}", name=machine.name)
        self._machines.update_status(updated)
        return updated

    def _machine_error(
        self,
        machine: Machine,
        error: MachineError,
        condition: Condition | None = None,
    ) -> MachineError:
        """Record ``error`` on the machine status and return it for raising.

        Raises:
            RemoteCallError: If the machine cannot be written back.
        """
        machine.status.error_reason = error.reason
        machine.status.error_message = error.message
        if condition is not None:
            status = OvirtMachineProviderStatus.from_raw(machine.status.provider_status)
            status.conditions = merge_conditions(status.conditions, condition)
            machine.status.provider_status = status.to_raw()

        try:
            self._persist(machine)
        except Exception as e:
            raise RemoteCallError(f"unable to update machine status: {e}") from e

        log.error("Machine error {name}: {message}", name=machine.name, message=error.message)
        return error
