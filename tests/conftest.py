from __future__ import annotations

from collections import deque
from copy import deepcopy
from dataclasses import replace

import pytest

from ovirt_actuator.api.model import (
    AffinityGroup,
    ClusterInfrastructure,
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
    ReportedDevice,
    VmStatus,
)
from ovirt_actuator.connection import ConnectionProvider
from ovirt_actuator.constants import CLUSTER_ID_LABEL, GIB
from ovirt_actuator.errors import NotFoundError
from ovirt_actuator.wait import PollWaiter

NAMESPACE = "openshift-machine-api"
TEMPLATE_DISK_SIZE = 10 * GIB

CREDENTIALS = {
    "ovirt_url": b"https://engine.example.com/ovirt-engine/api",
    "ovirt_username": b"admin@internal",
    "ovirt_password": b"secret",
    "ovirt_insecure": b"true",
}


# =============================================================================
# Engine
# =============================================================================


class FakeSession:
    """In-memory engine.

    VM status moves through scripted steps, one per ``get_vm`` call: a new VM
    is ``image_locked`` until first read as ``down``, a started VM goes
    through ``boot_statuses`` and a stopped VM becomes ``down`` on next read.
    """

    def __init__(self) -> None:
        self.vms: dict[str, Instance] = {}
        self.requests: dict[str, CreateVmRequest] = {}
        self.attachments: dict[str, list[DiskAttachment]] = {}
        self.disks: dict[str, Disk] = {}
        self.nics: dict[str, list[Nic]] = {}
        self.devices: dict[str, list[ReportedDevice]] = {}
        self.tags: dict[str, list[str]] = {}
        self.affinity_groups: dict[str, list[AffinityGroup]] = {}
        self.affinity_members: dict[str, list[str]] = {}
        self.affinity_errors: dict[str, Exception] = {}
        self.fail_on: dict[str, Exception] = {}
        self.calls: list[tuple[str, tuple]] = []

        self.alive = True
        self.bootable_disk = True
        self.boot_statuses: tuple[VmStatus, ...] = (VmStatus.POWERING_UP, VmStatus.UP)
        self.default_devices: list[ReportedDevice] = [
            ReportedDevice("lo", ("127.0.0.1",)),
            ReportedDevice("eth0", ("10.0.0.9", "fe80::1")),
        ]
        self._scripts: dict[str, deque[VmStatus]] = {}
        self._ids = 0

    def _call(self, name: str, *args: object) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def called(self, name: str) -> list[tuple]:
        return [args for n, args in self.calls if n == name]

    def add_vm(self, name: str, status: VmStatus = VmStatus.UP, vm_id: str | None = None) -> Instance:
        self._ids += 1
        vm = Instance(id=vm_id or f"vm-{self._ids}", name=name, status=status)
        self.vms[vm.id] = vm
        return vm

    def test(self) -> bool:
        self._call("test")
        return self.alive

    # VMs

    def create_vm(self, request: CreateVmRequest) -> Instance:
        self._call("create_vm", request)
        vm = self.add_vm(request.name, VmStatus.IMAGE_LOCKED)
        self.requests[vm.id] = request
        self._scripts[vm.id] = deque([VmStatus.DOWN])

        disk_id = f"{vm.id}-disk"
        self.disks[disk_id] = Disk(id=disk_id, provisioned_size=TEMPLATE_DISK_SIZE)
        self.attachments[vm.id] = [DiskAttachment(id=disk_id, bootable=self.bootable_disk)]
        self.nics[vm.id] = [Nic(id=f"{vm.id}-tmpl-nic", name="nic1")]
        return vm

    def get_vm(self, vm_id: str) -> Instance:
        self._call("get_vm", vm_id)
        if vm_id not in self.vms:
            raise NotFoundError(f"VM {vm_id} not found")
        script = self._scripts.get(vm_id)
        if script:
            self.vms[vm_id] = replace(self.vms[vm_id], status=script.popleft())
        return self.vms[vm_id]

    def search_vms(self, query: str) -> list[Instance]:
        self._call("search_vms", query)
        prefix = query.removeprefix("name=")
        # the engine matches names by prefix
        return [vm for vm in self.vms.values() if vm.name.startswith(prefix)]

    def start_vm(self, vm_id: str) -> None:
        self._call("start_vm", vm_id)
        self.vms[vm_id] = replace(self.vms[vm_id], status=VmStatus.WAIT_FOR_LAUNCH)
        self._scripts[vm_id] = deque(self.boot_statuses)
        self.devices.setdefault(vm_id, list(self.default_devices))

    def stop_vm(self, vm_id: str) -> None:
        self._call("stop_vm", vm_id)
        if self.vms[vm_id].status != VmStatus.DOWN:
            self.vms[vm_id] = replace(self.vms[vm_id], status=VmStatus.POWERING_DOWN)
            self._scripts[vm_id] = deque([VmStatus.DOWN])

    def remove_vm(self, vm_id: str) -> None:
        self._call("remove_vm", vm_id)
        del self.vms[vm_id]

    def add_tag(self, vm_id: str, tag: str) -> None:
        self._call("add_tag", vm_id, tag)
        self.tags.setdefault(vm_id, []).append(tag)

    # Disks

    def list_disk_attachments(self, vm_id: str) -> list[DiskAttachment]:
        self._call("list_disk_attachments", vm_id)
        return list(self.attachments.get(vm_id, []))

    def get_disk(self, disk_id: str) -> Disk:
        self._call("get_disk", disk_id)
        disk = self.disks[disk_id]
        if disk.status == DiskStatus.LOCKED:
            # unlocks after being observed once
            self.disks[disk_id] = replace(disk, status=DiskStatus.OK)
        return disk

    def update_disk_attachment(self, vm_id: str, attachment_id: str, provisioned_size: int) -> None:
        self._call("update_disk_attachment", vm_id, attachment_id, provisioned_size)
        self.disks[attachment_id] = Disk(
            id=attachment_id, provisioned_size=provisioned_size, status=DiskStatus.LOCKED
        )

    # NICs and guest devices

    def list_nics(self, vm_id: str) -> list[Nic]:
        self._call("list_nics", vm_id)
        return list(self.nics.get(vm_id, []))

    def remove_nic(self, vm_id: str, nic_id: str) -> None:
        self._call("remove_nic", vm_id, nic_id)
        self.nics[vm_id] = [n for n in self.nics[vm_id] if n.id != nic_id]

    def add_nic(self, vm_id: str, name: str, vnic_profile_id: str) -> None:
        self._call("add_nic", vm_id, name, vnic_profile_id)
        self.nics.setdefault(vm_id, []).append(Nic(id=f"{vm_id}-{name}", name=name))

    def list_reported_devices(self, vm_id: str) -> list[ReportedDevice]:
        self._call("list_reported_devices", vm_id)
        return list(self.devices.get(vm_id, []))

    # Affinity groups

    def list_affinity_groups(self, cluster_id: str) -> list[AffinityGroup]:
        self._call("list_affinity_groups", cluster_id)
        return list(self.affinity_groups.get(cluster_id, []))

    def add_vm_to_affinity_group(self, cluster_id: str, group_id: str, vm_id: str) -> None:
        self._call("add_vm_to_affinity_group", cluster_id, group_id, vm_id)
        self.affinity_members.setdefault(group_id, []).append(vm_id)
        if group_id in self.affinity_errors:
            raise self.affinity_errors[group_id]


# =============================================================================
# Orchestration store
# =============================================================================


class FakeSecretStore:
    def __init__(self) -> None:
        self.secrets: dict[tuple[str, str], dict[str, bytes]] = {}
        self.reads = 0

    def put(self, namespace: str, name: str, data: dict[str, bytes]) -> None:
        self.secrets[(namespace, name)] = data

    def get_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        self.reads += 1
        if (namespace, name) not in self.secrets:
            raise NotFoundError(f"secret {namespace}/{name} not found")
        return self.secrets[(namespace, name)]


class FakeMachineStore:
    """Records writes; the update response carries no status, like the API server."""

    def __init__(self) -> None:
        self.updates: list[Machine] = []
        self.status_updates: list[Machine] = []
        self.fail: Exception | None = None

    def update(self, machine: Machine) -> Machine:
        if self.fail is not None:
            raise self.fail
        self.updates.append(deepcopy(machine))
        stored = deepcopy(machine)
        stored.status = MachineResourceStatus()
        return stored

    def update_status(self, machine: Machine) -> Machine:
        self.status_updates.append(deepcopy(machine))
        return deepcopy(machine)


class FakeNodeStore:
    def __init__(self) -> None:
        self.nodes: dict[str, Node] = {}
        self.updated: list[Node] = []
        self.deleted: list[str] = []
        self.fail_get: Exception | None = None

    def get(self, name: str) -> Node:
        if self.fail_get is not None:
            raise self.fail_get
        if name not in self.nodes:
            raise NotFoundError(f"node {name} not found")
        return deepcopy(self.nodes[name])

    def update(self, node: Node) -> Node:
        self.nodes[node.name] = deepcopy(node)
        self.updated.append(deepcopy(node))
        return node

    def delete(self, node: Node) -> None:
        self.nodes.pop(node.name, None)
        self.deleted.append(node.name)


class FakeInfrastructure:
    def __init__(self) -> None:
        self.info = ClusterInfrastructure(api_server_internal_ip="10.0.0.2", ingress_ip="10.0.0.3")
        self.fail: Exception | None = None

    def get_cluster_infrastructure(self) -> ClusterInfrastructure:
        if self.fail is not None:
            raise self.fail
        return self.info


class FakeEventRecorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def event(self, obj, event_type, reason, message) -> None:
        self.events.append((obj.name, event_type, reason))

    @property
    def reasons(self) -> list[str]:
        return [reason for _, _, reason in self.events]


# =============================================================================
# Fixtures
# =============================================================================


def provider_spec(**overrides) -> dict:
    spec = {
        "clusterId": "cluster-1",
        "templateName": "rhcos-template",
        "type": "server",
        "cpu": {"cores": 2, "sockets": 1, "threads": 1},
        "memoryMB": 2048,
        "osDisk": {"sizeGB": 10},
        "networkInterfaces": [{"vnicProfileID": "profile-a"}],
        "userDataSecret": {"name": "worker-user-data"},
        "credentialsSecret": {"name": "ovirt-credentials"},
    }
    spec.update(overrides)
    return spec


def make_machine(name: str = "worker-0", **spec_overrides) -> Machine:
    return Machine(
        name=name,
        namespace=NAMESPACE,
        labels={CLUSTER_ID_LABEL: "ocp-abc12"},
        spec=MachineResourceSpec(provider_spec=provider_spec(**spec_overrides)),
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def secrets() -> FakeSecretStore:
    store = FakeSecretStore()
    store.put(NAMESPACE, "ovirt-credentials", dict(CREDENTIALS))
    store.put(NAMESPACE, "worker-user-data", {"userData": b"#ignition"})
    return store


@pytest.fixture
def machines() -> FakeMachineStore:
    return FakeMachineStore()


@pytest.fixture
def nodes() -> FakeNodeStore:
    return FakeNodeStore()


@pytest.fixture
def infrastructure() -> FakeInfrastructure:
    return FakeInfrastructure()


@pytest.fixture
def events() -> FakeEventRecorder:
    return FakeEventRecorder()


@pytest.fixture
def waiter() -> PollWaiter:
    return PollWaiter(sleep=lambda _: None)


@pytest.fixture
def logins() -> list[Credentials]:
    return []


@pytest.fixture
def connections(secrets, session, logins) -> ConnectionProvider:
    def factory(creds: Credentials) -> FakeSession:
        logins.append(creds)
        return session

    return ConnectionProvider(secrets, factory)


@pytest.fixture
def machine() -> Machine:
    return make_machine()
