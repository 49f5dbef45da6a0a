"""Boot disk growth."""

from __future__ import annotations

from loguru import logger

from ovirt_actuator.api.model import DiskAttachment, DiskStatus
from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.constants import DISK_EXTEND_INTERVAL, DISK_EXTEND_TIMEOUT, GIB
from ovirt_actuator.errors import ConfigurationError, RemoteCallError
from ovirt_actuator.wait import PollWaiter, pending_on_error

log = logger.bind(component="disks")


class DiskExtender:
    """Grows a VM's bootable disk to a requested size. Never shrinks it."""

    def __init__(self, session: VirtualizationSession, waiter: PollWaiter | None = None) -> None:
        self._session = session
        self._waiter = waiter or PollWaiter()

    def extend(self, vm_id: str, vm_name: str, size_gb: int) -> int:
        """Make the boot disk at least ``size_gb`` GiB.

        Returns:
            The resulting provisioned size in bytes, ``max(current, requested)``.

        Raises:
            ConfigurationError: If the VM has no bootable disk.
            RemoteCallError: If the engine rejects the update.
            WaitTimeoutError: If the disk does not settle within 20 minutes.
        """
        attachment = self._bootable_attachment(vm_id, vm_name)
        requested = size_gb * GIB

        # the attachment id is the id of the attached disk
        disk = self._session.get_disk(attachment.id)
        current = disk.provisioned_size

        if requested < current:
            log.warning(
                "Requested OS disk size {requested} is smaller than current size {current}, "
                "shrinking is not supported",
                requested=requested, current=current,
            )
            return current
        if requested == current:
            return current

        log.info(
            "Extending the OS disk of {vm} from {current} to {requested}",
            vm=vm_name, current=current, requested=requested,
        )
        try:
            self._session.update_disk_attachment(vm_id, attachment.id, requested)
        except Exception as e:
            raise RemoteCallError(f"failed to update the OS disk: {e}") from e

        self._waiter.wait(
            DISK_EXTEND_INTERVAL,
            DISK_EXTEND_TIMEOUT,
            pending_on_error(
                lambda: self._session.get_disk(attachment.id),
                lambda d: d.status == DiskStatus.OK,
            ),
            description=f"disk {attachment.id} to become ready",
        )
        return requested

    def _bootable_attachment(self, vm_id: str, vm_name: str) -> DiskAttachment:
        for attachment in self._session.list_disk_attachments(vm_id):
            if attachment.bootable:
                return attachment
        raise ConfigurationError(
            f"the VM {vm_name}({vm_id}) doesn't have a bootable disk - "
            "was Blank template used by mistake?"
        )
