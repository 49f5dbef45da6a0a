"""Network interface replacement."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.api.spec import NetworkInterface
from ovirt_actuator.errors import RemoteCallError

log = logger.bind(component="nics")


class NetworkInterfaceReconciler:
    """Replaces a VM's NICs with the declared set.

    Not idempotent: every run clears all NICs and re-adds them.
    """

    def __init__(self, session: VirtualizationSession) -> None:
        self._session = session

    def replace(self, vm_id: str, interfaces: Sequence[NetworkInterface]) -> None:
        """Swap the VM's NICs for ``nic1..nicN`` bound to the given profiles.

        An empty ``interfaces`` leaves the template's NICs untouched.
        """
        if not interfaces:
            return

        try:
            existing = self._session.list_nics(vm_id)
        except Exception as e:
            raise RemoteCallError(f"failed fetching VM network interfaces: {e}") from e

        for nic in existing:
            try:
                self._session.remove_nic(vm_id, nic.id)
            except Exception as e:
                raise RemoteCallError(
                    f"failed clearing all interfaces before populating new ones: {e}"
                ) from e

        for i, interface in enumerate(interfaces, start=1):
            name = f"nic{i}"
            try:
                self._session.add_nic(vm_id, name, interface.vnic_profile_id)
            except Exception as e:
                raise RemoteCallError(f"failed to create network interface {name}: {e}") from e
            log.debug(
                "Added {nic} with profile {profile} to VM {vm_id}",
                nic=name, profile=interface.vnic_profile_id, vm_id=vm_id,
            )
