"""Affinity group membership."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from ovirt_actuator.api.model import AffinityGroup
from ovirt_actuator.api.protocols import VirtualizationSession
from ovirt_actuator.errors import ConfigurationError, RemoteCallError, XMLTagMismatchError

log = logger.bind(component="affinity")


def _is_add_vm_response_quirk(error: Exception) -> bool:
    """Match the malformed reply some engine versions send for a successful add.

    oVirt engine bug 1931932 answers ``<action>`` where ``<vm>`` is expected;
    the VM is added nonetheless. Only this exact shape is tolerated.
    """
    return (
        isinstance(error, XMLTagMismatchError)
        and error.actual == "action"
        and error.expected == "vm"
    )


class AffinityGroupBinder:
    """Adds a VM to named affinity groups of its cluster."""

    def __init__(self, session: VirtualizationSession) -> None:
        self._session = session

    def resolve(self, cluster_id: str, names: Sequence[str]) -> list[AffinityGroup]:
        """Map group names to the cluster's groups.

        Raises:
            ConfigurationError: If a name is not defined on the cluster.
        """
        if not names:
            return []
        by_name = {g.name: g for g in self._session.list_affinity_groups(cluster_id)}
        groups: list[AffinityGroup] = []
        for name in names:
            if name not in by_name:
                raise ConfigurationError(
                    f"affinity group {name} was not found on cluster {cluster_id}"
                )
            groups.append(by_name[name])
        return groups

    def bind(self, cluster_id: str, vm_id: str, vm_name: str, names: Sequence[str]) -> None:
        """Add the VM to every group in ``names``.

        Raises:
            ConfigurationError: If a group does not exist on the cluster.
            RemoteCallError: If adding the VM to a group fails.
        """
        for group in self.resolve(cluster_id, names):
            log.info("Adding VM {vm} to affinity group {group}", vm=vm_name, group=group.name)
            try:
                self._session.add_vm_to_affinity_group(cluster_id, group.id, vm_id)
            except Exception as e:
                if _is_add_vm_response_quirk(e):
                    log.debug("Ignoring known malformed reply from engine: {err}", err=e)
                    continue
                raise RemoteCallError(
                    f"failed to add VM {vm_name} to affinity group {group.name}: {e}"
                ) from e
