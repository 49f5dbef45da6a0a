"""VM lookups by id and by name."""

from __future__ import annotations

from loguru import logger

from ovirt_actuator.api.model import Instance, Machine
from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.constants import PROVIDER_ID_PREFIX
from ovirt_actuator.errors import ConfigurationError, RemoteCallError

log = logger.bind(component="directory")


class InstanceDirectory:
    """Finds the VM backing a machine.

    Args:
        session: Engine session.
        machine_name: Name of the machine; VMs carry the same name.
    """

    def __init__(self, session: VirtualizationSession, machine_name: str) -> None:
        self._session = session
        self._machine_name = machine_name

    def get_by_id(self, vm_id: str) -> Instance:
        """Fetch a VM by id.

        Raises:
            ConfigurationError: If ``vm_id`` is empty.
            NotFoundError: If the engine has no such VM.
            RemoteCallError: If the lookup itself failed.
        """
        if not vm_id:
            raise ConfigurationError("a VM id must be given to look the VM up")
        log.debug("Fetching VM by id {vm_id}", vm_id=vm_id)
        return self._session.get_vm(vm_id)

    def get_by_name(self, name: str | None = None) -> Instance | None:
        """Search a VM by exact name, None if there is no such VM.

        The engine search may match by prefix; only an exact name counts.
        """
        name = name or self._machine_name
        matches = [vm for vm in self._session.search_vms(f"name={name}") if vm.name == name]
        if len(matches) > 1:
            raise RemoteCallError(f"expected 1 VM named {name} but got {len(matches)}")
        return matches[0] if matches else None

    def get_by_machine(self, machine: Machine) -> Instance | None:
        """Prefer the id the machine already carries, fall back to its name.

        A failing id lookup (e.g. the VM was deleted out of band and the id is
        stale) also falls back to the name search.
        """
        vm_id = _vm_id_from_provider_id(machine.spec.provider_id)
        if vm_id:
            try:
                return self.get_by_id(vm_id)
            except RemoteCallError as e:
                log.info(
                    "VM lookup by id {vm_id} failed, searching by name: {err}",
                    vm_id=vm_id, err=e,
                )
        return self.get_by_name(machine.name)


def _vm_id_from_provider_id(provider_id: str | None) -> str:
    if not provider_id:
        return ""
    return provider_id.removeprefix(PROVIDER_ID_PREFIX)
