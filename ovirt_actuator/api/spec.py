"""Provider spec and provider status documents.

Both live on the machine resource as raw JSON-like documents; they are parsed
into pydantic models on the way in and dumped back (camelCase) on the way out.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ovirt_actuator.errors import ConfigurationError

_FROZEN = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# =============================================================================
# Provider spec
# =============================================================================


class ObjectReference(BaseModel):
    model_config = _FROZEN

    name: str


class CPU(BaseModel):
    model_config = _FROZEN

    cores: int = Field(ge=1)
    sockets: int = Field(ge=1)
    threads: int = Field(ge=1)


class OSDisk(BaseModel):
    model_config = _FROZEN

    size_gb: int = Field(alias="sizeGB", ge=0)


class NetworkInterface(BaseModel):
    model_config = _FROZEN

    vnic_profile_id: str = Field(alias="vnicProfileID")


class OvirtMachineProviderSpec(BaseModel):
    """Desired configuration of the VM backing a machine."""

    model_config = _FROZEN

    cluster_id: str = Field(alias="clusterId")
    template_name: str = Field(alias="templateName")
    vm_type: str = Field(default="", alias="type")
    instance_type_id: str = Field(default="", alias="instanceTypeId")
    cpu: CPU | None = None
    memory_mb: int = Field(default=0, alias="memoryMB", ge=0)
    os_disk: OSDisk | None = Field(default=None, alias="osDisk")
    network_interfaces: tuple[NetworkInterface, ...] = Field(default=(), alias="networkInterfaces")
    affinity_groups_names: tuple[str, ...] = Field(default=(), alias="affinityGroupsNames")
    user_data_secret: ObjectReference | None = Field(default=None, alias="userDataSecret")
    credentials_secret: ObjectReference = Field(alias="credentialsSecret")

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> Self:
        """Parse the raw provider spec stored on a machine.

        Raises:
            ConfigurationError: If the document is missing or malformed.
        """
        if not raw:
            raise ConfigurationError("provider spec is empty")
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"cannot parse provider spec: {e}") from e


# =============================================================================
# Provider status
# =============================================================================

ConditionStatus = Literal["True", "False", "Unknown"]

MACHINE_CREATED = "MachineCreated"


class Condition(BaseModel):
    model_config = _FROZEN

    type: str
    status: ConditionStatus
    reason: str = ""
    message: str = ""
    last_probe_time: datetime | None = Field(default=None, alias="lastProbeTime")
    last_transition_time: datetime | None = Field(default=None, alias="lastTransitionTime")


class OvirtMachineProviderStatus(BaseModel):
    """Observed state of the VM, persisted on the machine status."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    instance_id: str | None = Field(default=None, alias="instanceId")
    instance_state: str | None = Field(default=None, alias="instanceState")
    conditions: list[Condition] = Field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> Self:
        try:
            return cls.model_validate(raw or {})
        except ValidationError as e:
            raise ConfigurationError(f"cannot parse provider status: {e}") from e

    def to_raw(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def condition_success() -> Condition:
    return Condition(
        type=MACHINE_CREATED,
        status="True",
        reason="MachineCreateSucceeded",
        message="Machine successfully created",
    )


def condition_failed() -> Condition:
    return Condition(
        type=MACHINE_CREATED,
        status="False",
        reason="MachineCreateFailed",
        message="Machine creation failed",
    )
