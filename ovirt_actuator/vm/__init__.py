"""Engine-side operations on a single VM."""

from ovirt_actuator.vm.addresses import IPDiscoverer
from ovirt_actuator.vm.affinity import AffinityGroupBinder
from ovirt_actuator.vm.directory import InstanceDirectory
from ovirt_actuator.vm.disks import DiskExtender
from ovirt_actuator.vm.nics import NetworkInterfaceReconciler
from ovirt_actuator.vm.provisioner import (
    InstanceProvisioner,
    ProvisioningContext,
    ProvisioningStep,
    build_create_request,
)
from ovirt_actuator.vm.terminator import InstanceTerminator

__all__ = [
    "AffinityGroupBinder",
    "DiskExtender",
    "IPDiscoverer",
    "InstanceDirectory",
    "InstanceProvisioner",
    "InstanceTerminator",
    "NetworkInterfaceReconciler",
    "ProvisioningContext",
    "ProvisioningStep",
    "build_create_request",
]
