from ovirt_actuator.api.model import (
    AffinityGroup,
    ClusterInfrastructure,
    CpuTopology,
    CreateVmRequest,
    Credentials,
    Disk,
    DiskAttachment,
    DiskStatus,
    Instance,
    Machine,
    MachineResourceSpec,
    MachineResourceStatus,
    Nic,
    Node,
    NodeAddress,
    ReportedDevice,
    VmStatus,
)
from ovirt_actuator.api.spec import (
    Condition,
    OvirtMachineProviderSpec,
    OvirtMachineProviderStatus,
    condition_failed,
    condition_success,
)

__all__ = [
    "AffinityGroup",
    "ClusterInfrastructure",
    "Condition",
    "CpuTopology",
    "CreateVmRequest",
    "Credentials",
    "Disk",
    "DiskAttachment",
    "DiskStatus",
    "Instance",
    "Machine",
    "MachineResourceSpec",
    "MachineResourceStatus",
    "Nic",
    "Node",
    "NodeAddress",
    "OvirtMachineProviderSpec",
    "OvirtMachineProviderStatus",
    "ReportedDevice",
    "VmStatus",
    "condition_failed",
    "condition_success",
]
