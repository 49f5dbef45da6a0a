"""VM shutdown and removal."""

from __future__ import annotations

from loguru import logger

from ovirt_actuator.api.model import VmStatus
from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.constants import INSTANCE_STATUS_INTERVAL, INSTANCE_STATUS_TIMEOUT
from ovirt_actuator.errors import RemoteCallError, WaitTimeoutError
from ovirt_actuator.wait import Poll, PollWaiter, pending_on_error

log = logger.bind(component="terminator")


class InstanceTerminator:
    """Stops a VM, removes it, and waits until the engine forgets it."""

    def __init__(self, session: VirtualizationSession, waiter: PollWaiter | None = None) -> None:
        self._session = session
        self._waiter = waiter or PollWaiter()

    def delete(self, vm_id: str) -> None:
        """Stop then remove a VM.

        Only the stop request and the final wait decide the outcome: a VM that
        does not reach ``down`` in time, or a rejected remove request, is
        logged and the removal is still awaited.

        Raises:
            RemoteCallError: If the stop request fails.
            WaitTimeoutError: If the VM is still known to the engine after 5 minutes.
        """
        log.info("Deleting VM {vm_id}", vm_id=vm_id)

        try:
            # stopping an already stopped VM is a no-op on the engine
            self._session.stop_vm(vm_id)
        except Exception as e:
            raise RemoteCallError(f"failed to stop VM {vm_id}: {e}") from e

        try:
            self._waiter.wait(
                INSTANCE_STATUS_INTERVAL,
                INSTANCE_STATUS_TIMEOUT,
                pending_on_error(
                    lambda: self._session.get_vm(vm_id),
                    lambda vm: vm.status == VmStatus.DOWN,
                ),
                description=f"VM {vm_id} to stop",
            )
        except WaitTimeoutError as e:
            log.warning("VM {vm_id} did not stop, removing anyway: {err}", vm_id=vm_id, err=e)

        try:
            self._session.remove_vm(vm_id)
        except Exception as e:
            log.warning("Remove request for VM {vm_id} failed: {err}", vm_id=vm_id, err=e)

        self._waiter.wait(
            INSTANCE_STATUS_INTERVAL,
            INSTANCE_STATUS_TIMEOUT,
            lambda: self._gone(vm_id),
            description=f"VM {vm_id} to be removed",
        )

    def _gone(self, vm_id: str) -> Poll:
        try:
            self._session.get_vm(vm_id)
        except Exception:
            return Poll.DONE
        return Poll.PENDING
