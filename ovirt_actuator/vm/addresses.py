"""Guest IP discovery."""

from __future__ import annotations

import re
from collections.abc import Set

from loguru import logger

from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.errors import RemoteCallError

log = logger.bind(component="addresses")

NIC_NAME_PATTERN = re.compile(r"^(eth|en)")


class IPDiscoverer:
    """Picks a usable IP from the devices the guest agent reports."""

    def __init__(self, session: VirtualizationSession) -> None:
        self._session = session

    def find_address(self, vm_id: str, excluded: Set[str] = frozenset()) -> str:
        """Return the first reported address of an Ethernet-like device.

        Devices are visited in the order the engine reports them, and their
        addresses likewise; addresses in ``excluded`` are skipped.

        Raises:
            RemoteCallError: If no devices are reported yet or none yields an
                eligible address.
        """
        try:
            devices = self._session.list_reported_devices(vm_id)
        except Exception as e:
            raise RemoteCallError(f"failed to get reported devices list: {e}") from e

        if not devices:
            raise RemoteCallError(f"cannot find NICs for vm id {vm_id}")

        for device in devices:
            if not NIC_NAME_PATTERN.match(device.name):
                log.info(
                    "VM {vm_id}: skipped nic {nic}, naming pattern mismatch",
                    vm_id=vm_id, nic=device.name,
                )
                continue
            for address in device.addresses:
                if not address:
                    continue
                if address in excluded:
                    log.info("Address {address} is excluded from usable IPs", address=address)
                    continue
                log.info("VM {vm_id}: found usable IP {address}", vm_id=vm_id, address=address)
                return address

        raise RemoteCallError(f"couldn't find a usable IP address for vm id {vm_id}")
