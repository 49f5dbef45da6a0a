"""Collaborator interfaces consumed by the actuator.

The engine session and the orchestration store are owned elsewhere; these
protocols describe only the calls the actuator makes. Implementations raise
``NotFoundError`` for missing objects and ``RemoteCallError`` for any other
failure.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal, Protocol, TypeAlias, runtime_checkable

from ovirt_actuator.api.model import (
    AffinityGroup,
    ClusterInfrastructure,
    CreateVmRequest,
    Credentials,
    Disk,
    DiskAttachment,
    Instance,
    Machine,
    Nic,
    Node,
    ReportedDevice,
)

__all__ = [
    "EventRecorder",
    "EventType",
    "InfrastructureStore",
    "MachineStore",
    "NodeStore",
    "SecretStore",
    "SessionFactory",
    "VirtualizationSession",
]


@runtime_checkable
class VirtualizationSession(Protocol):
    """Authenticated session against the virtualization engine."""

    def test(self) -> bool:
        """Return True while the session is still usable."""
        ...

    # VMs
    def create_vm(self, request: CreateVmRequest) -> Instance: ...
    def get_vm(self, vm_id: str) -> Instance: ...
    def search_vms(self, query: str) -> list[Instance]: ...
    def start_vm(self, vm_id: str) -> None: ...
    def stop_vm(self, vm_id: str) -> None: ...
    def remove_vm(self, vm_id: str) -> None: ...
    def add_tag(self, vm_id: str, tag: str) -> None: ...

    # Disks
    def list_disk_attachments(self, vm_id: str) -> list[DiskAttachment]: ...
    def get_disk(self, disk_id: str) -> Disk: ...
    def update_disk_attachment(self, vm_id: str, attachment_id: str, provisioned_size: int) -> None: ...

    # NICs and guest devices
    def list_nics(self, vm_id: str) -> list[Nic]: ...
    def remove_nic(self, vm_id: str, nic_id: str) -> None: ...
    def add_nic(self, vm_id: str, name: str, vnic_profile_id: str) -> None: ...
    def list_reported_devices(self, vm_id: str) -> list[ReportedDevice]: ...

    # Affinity groups
    def list_affinity_groups(self, cluster_id: str) -> list[AffinityGroup]: ...
    def add_vm_to_affinity_group(self, cluster_id: str, group_id: str, vm_id: str) -> None: ...


SessionFactory: TypeAlias = Callable[[Credentials], VirtualizationSession]


class SecretStore(Protocol):
    def get_secret(self, namespace: str, name: str) -> dict[str, bytes]: ...


class MachineStore(Protocol):
    def update(self, machine: Machine) -> Machine: ...
    def update_status(self, machine: Machine) -> Machine: ...


class NodeStore(Protocol):
    def get(self, name: str) -> Node: ...
    def update(self, node: Node) -> Node: ...
    def delete(self, node: Node) -> None: ...


class InfrastructureStore(Protocol):
    def get_cluster_infrastructure(self) -> ClusterInfrastructure: ...


EventType: TypeAlias = Literal["Normal", "Warning"]


class EventRecorder(Protocol):
    def event(self, obj: Machine | Node, event_type: EventType, reason: str, message: str) -> None: ...
