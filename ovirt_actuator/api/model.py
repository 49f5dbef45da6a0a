"""Observed VM records and the orchestration resources the actuator mutates."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, TypeAlias

from ovirt_actuator.errors import ConfigurationError


class VmStatus(StrEnum):
    """Power status reported by the engine for a VM."""

    DOWN = "down"
    IMAGE_LOCKED = "image_locked"
    MIGRATING = "migrating"
    NOT_RESPONDING = "not_responding"
    PAUSED = "paused"
    POWERING_DOWN = "powering_down"
    POWERING_UP = "powering_up"
    REBOOT_IN_PROGRESS = "reboot_in_progress"
    RESTORING_STATE = "restoring_state"
    SAVING_STATE = "saving_state"
    SUSPENDED = "suspended"
    UNASSIGNED = "unassigned"
    UNKNOWN = "unknown"
    UP = "up"
    WAIT_FOR_LAUNCH = "wait_for_launch"


class DiskStatus(StrEnum):
    ILLEGAL = "illegal"
    LOCKED = "locked"
    OK = "ok"


# =============================================================================
# Engine records
# =============================================================================


@dataclass(frozen=True, slots=True)
class Instance:
    """Snapshot of a VM as returned by the engine.

    The id is assigned on creation and never changes; the name is unique
    within the engine and serves as the fallback lookup key.
    """

    id: str
    name: str
    status: VmStatus


@dataclass(frozen=True, slots=True)
class DiskAttachment:
    id: str
    bootable: bool = False


@dataclass(frozen=True, slots=True)
class Disk:
    id: str
    provisioned_size: int
    status: DiskStatus = DiskStatus.OK


@dataclass(frozen=True, slots=True)
class Nic:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ReportedDevice:
    """A network device reported by the guest agent."""

    name: str
    addresses: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class AffinityGroup:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class CpuTopology:
    cores: int
    sockets: int
    threads: int


@dataclass(frozen=True, slots=True)
class CreateVmRequest:
    """Everything the engine needs to create a VM from a template.

    When ``instance_type_id`` is set, ``cpu`` and ``memory`` are left unset.
    """

    name: str
    cluster_id: str
    template_name: str
    custom_script: str
    hostname: str
    vm_type: str | None = None
    instance_type_id: str | None = None
    cpu: CpuTopology | None = None
    memory: int | None = None


# =============================================================================
# Orchestration resources
# =============================================================================

AddressType: TypeAlias = Literal["InternalIP", "ExternalIP", "InternalDNS", "ExternalDNS", "Hostname"]


@dataclass(frozen=True, slots=True)
class NodeAddress:
    type: AddressType
    address: str


@dataclass
class MachineResourceSpec:
    provider_id: str | None = None
    provider_spec: dict[str, Any] = field(default_factory=dict)


@dataclass
class MachineResourceStatus:
    addresses: list[NodeAddress] = field(default_factory=list)
    provider_status: dict[str, Any] | None = None
    error_reason: str | None = None
    error_message: str | None = None


@dataclass
class Machine:
    """A machine resource as held by the orchestration store."""

    name: str
    namespace: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    spec: MachineResourceSpec = field(default_factory=MachineResourceSpec)
    status: MachineResourceStatus = field(default_factory=MachineResourceStatus)


@dataclass
class Node:
    name: str
    provider_id: str = ""


@dataclass(frozen=True, slots=True)
class ClusterInfrastructure:
    """Addresses reserved by the orchestration control plane itself."""

    api_server_internal_ip: str
    ingress_ip: str

    @property
    def reserved_addresses(self) -> frozenset[str]:
        return frozenset(a for a in (self.api_server_internal_ip, self.ingress_ip) if a)


@dataclass(frozen=True, slots=True)
class Credentials:
    url: str
    username: str
    password: str = field(repr=False)
    ca_file: str = ""
    insecure: bool = False
    ca_bundle: str = ""

    @classmethod
    def from_secret(cls, data: dict[str, bytes | str]) -> Credentials:
        """Build credentials from the ``ovirt_*`` keys of a secret."""

        def _get(key: str) -> str:
            value = data.get(key, "")
            return value.decode() if isinstance(value, bytes) else value

        missing = [k for k in ("ovirt_url", "ovirt_username", "ovirt_password") if not _get(k)]
        if missing:
            raise ConfigurationError(f"credentials secret is missing keys: {', '.join(missing)}")

        return cls(
            url=_get("ovirt_url"),
            username=_get("ovirt_username"),
            password=_get("ovirt_password"),
            ca_file=_get("ovirt_cafile"),
            insecure=_get("ovirt_insecure").lower() == "true",
            ca_bundle=_get("ovirt_ca_bundle"),
        )
