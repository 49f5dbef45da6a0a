"""VM creation and post-create configuration.

Creation is a single engine call, but the disk and NIC topology only exist
once the engine has finished cloning the template, so configuration waits
for the new VM to reach ``down`` first. Configuration is then a fixed
sequence of steps, each either fatal or best-effort.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from ovirt_actuator.api.model import CpuTopology, CreateVmRequest, Instance, Machine, VmStatus
from ovirt_actuator.api.protocols import SecretStore, VirtualizationSession
from ovirt_actuator.api.spec import OvirtMachineProviderSpec
from ovirt_actuator.constants import (
    CLUSTER_ID_LABEL,
    MIB,
    USER_DATA_SECRET_KEY,
    VM_PROVISION_INTERVAL,
    VM_PROVISION_TIMEOUT,
)
from ovirt_actuator.errors import (
    ConfigurationError,
    ProvisioningError,
    RemoteCallError,
    WaitTimeoutError,
)
from ovirt_actuator.vm.affinity import AffinityGroupBinder
from ovirt_actuator.vm.disks import DiskExtender
from ovirt_actuator.vm.nics import NetworkInterfaceReconciler
from ovirt_actuator.wait import PollWaiter, pending_on_error

log = logger.bind(component="provisioner")


# =============================================================================
# Steps
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProvisioningContext:
    machine: Machine
    spec: OvirtMachineProviderSpec
    vm: Instance


@dataclass(frozen=True, slots=True)
class ProvisioningStep:
    """One post-create configuration step.

    A failing fatal step aborts creation; a failing best-effort step is
    logged and skipped.
    """

    name: str
    apply: Callable[[ProvisioningContext], None]
    fatal: bool = True


# =============================================================================
# Request
# =============================================================================


def build_create_request(
    machine: Machine,
    spec: OvirtMachineProviderSpec,
    user_data: str,
) -> CreateVmRequest:
    """Translate a provider spec into an engine create request.

    An instance type, when given, decides CPU and memory; the explicit
    topology and memory size are only used without one.
    """
    cpu: CpuTopology | None = None
    memory: int | None = None
    if not spec.instance_type_id:
        if spec.cpu is not None:
            cpu = CpuTopology(
                cores=spec.cpu.cores,
                sockets=spec.cpu.sockets,
                threads=spec.cpu.threads,
            )
        if spec.memory_mb > 0:
            memory = spec.memory_mb * MIB

    return CreateVmRequest(
        name=machine.name,
        cluster_id=spec.cluster_id,
        template_name=spec.template_name,
        custom_script=user_data,
        hostname=machine.name,
        vm_type=spec.vm_type or None,
        instance_type_id=spec.instance_type_id or None,
        cpu=cpu,
        memory=memory,
    )


# =============================================================================
# Provisioner
# =============================================================================


class InstanceProvisioner:
    """Creates the VM for a machine and applies its configuration.

    Args:
        session: Engine session.
        secrets: Store holding the user data secret.
        waiter: Poller used for every wait (tests inject a fast one).
    """

    def __init__(
        self,
        session: VirtualizationSession,
        secrets: SecretStore,
        waiter: PollWaiter | None = None,
    ) -> None:
        self._session = session
        self._secrets = secrets
        self._waiter = waiter or PollWaiter()
        self._disks = DiskExtender(session, self._waiter)
        self._nics = NetworkInterfaceReconciler(session)
        self._affinity = AffinityGroupBinder(session)

    @property
    def steps(self) -> tuple[ProvisioningStep, ...]:
        return (
            ProvisioningStep("extend the OS disk", self._extend_disk),
            ProvisioningStep("handle nics creation", self._replace_nics),
            ProvisioningStep("tag the VM", self._tag, fatal=False),
            ProvisioningStep("add the VM to affinity groups", self._bind_affinity_groups),
        )

    def create(self, machine: Machine, spec: OvirtMachineProviderSpec | None) -> Instance:
        """Create and configure the VM backing ``machine``.

        Returns:
            The VM as re-read from the engine after configuration.

        Raises:
            ConfigurationError: On a missing spec, user data, bootable disk or
                affinity group.
            RemoteCallError: If an engine call or a wait fails.
        """
        if spec is None:
            raise ConfigurationError("create options need to be specified to create an instance")

        user_data = self._user_data(machine, spec)
        request = build_create_request(machine, spec, user_data)

        log.info("Creating VM {name}", name=request.name)
        try:
            vm = self._session.create_vm(request)
        except Exception as e:
            raise RemoteCallError(f"failed creating VM {request.name}: {e}") from e

        try:
            self._waiter.wait(
                VM_PROVISION_INTERVAL,
                VM_PROVISION_TIMEOUT,
                pending_on_error(
                    lambda: self._session.get_vm(vm.id),
                    lambda current: current.status == VmStatus.DOWN,
                ),
                description=f"VM {vm.name} to be provisioned",
            )
        except WaitTimeoutError as e:
            raise WaitTimeoutError(
                f"timed out waiting for the VM {vm.name} creation to finish"
            ) from e

        context = ProvisioningContext(machine=machine, spec=spec, vm=vm)
        for step in self.steps:
            self._run(step, context)

        return self._session.get_vm(vm.id)

    def _run(self, step: ProvisioningStep, context: ProvisioningContext) -> None:
        try:
            step.apply(context)
        except Exception as e:
            if not step.fatal:
                log.warning(
                    "Failed to {step} for VM {vm}, skipping: {err}",
                    step=step.name, vm=context.vm.name, err=e,
                )
                return
            if isinstance(e, ConfigurationError):
                raise
            raise ProvisioningError(step.name, context.vm.name, e) from e
        log.debug("Completed step '{step}' for VM {vm}", step=step.name, vm=context.vm.name)

    def _user_data(self, machine: Machine, spec: OvirtMachineProviderSpec) -> str:
        if spec.user_data_secret is None:
            raise ConfigurationError("the provider spec does not reference a user data secret")
        name = spec.user_data_secret.name
        try:
            data = self._secrets.get_secret(machine.namespace, name)
        except Exception as e:
            raise RemoteCallError(
                f"failed to fetch user data secret {machine.namespace}/{name}: {e}"
            ) from e

        payload = data.get(USER_DATA_SECRET_KEY)
        if payload is None:
            raise ConfigurationError(
                f"user data secret {machine.namespace}/{name} has no '{USER_DATA_SECRET_KEY}' key"
            )
        return payload.decode() if isinstance(payload, bytes) else payload

    # -------------------------------------------------------------------------
    # Step implementations
    # -------------------------------------------------------------------------

    def _extend_disk(self, ctx: ProvisioningContext) -> None:
        if ctx.spec.os_disk is None:
            return
        self._disks.extend(ctx.vm.id, ctx.vm.name, ctx.spec.os_disk.size_gb)

    def _replace_nics(self, ctx: ProvisioningContext) -> None:
        self._nics.replace(ctx.vm.id, ctx.spec.network_interfaces)

    def _tag(self, ctx: ProvisioningContext) -> None:
        cluster_id = ctx.machine.labels.get(CLUSTER_ID_LABEL)
        if not cluster_id:
            raise ConfigurationError(f"machine {ctx.machine.name} has no {CLUSTER_ID_LABEL} label")
        self._session.add_tag(ctx.vm.id, cluster_id)

    def _bind_affinity_groups(self, ctx: ProvisioningContext) -> None:
        self._affinity.bind(
            ctx.spec.cluster_id,
            ctx.vm.id,
            ctx.vm.name,
            ctx.spec.affinity_groups_names,
        )
