"""Node provider-id reconciliation.

Nodes join the cluster without knowing which VM backs them. This reconciler
looks the VM up by the node name, stamps ``ovirt://<vm id>`` onto the node,
and removes nodes whose VM no longer exists on the engine.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger

from ovirt_actuator.api.model import VmStatus
from ovirt_actuator.api.protocols import NodeStore
from ovirt_actuator.config import ActuatorConfig
from ovirt_actuator.connection import ConnectionProvider
from ovirt_actuator.constants import NODE_VM_DOWN_REQUEUE, PROVIDER_ID_PREFIX
from ovirt_actuator.errors import ActuatorError, NotFoundError, RemoteCallError
from ovirt_actuator.vm.directory import InstanceDirectory

T = TypeVar("T")

log = logger.bind(component="provider-id")


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of one node reconciliation.

    Attributes:
        requeue_after: Seconds after which the node should be looked at
            again, or None when it is settled.
    """

    requeue_after: float | None = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


class ProviderIDReconciler:
    """Keeps node provider ids in line with the engine VMs.

    Args:
        nodes: Store the nodes are read from and written to.
        connections: Shared, cached engine session provider.
        config: Namespace and credentials secret used for the engine session.
    """

    def __init__(
        self,
        nodes: NodeStore,
        connections: ConnectionProvider,
        config: ActuatorConfig | None = None,
    ) -> None:
        self._nodes = nodes
        self._connections = connections
        self._config = config or ActuatorConfig()

    def reconcile(self, node_name: str) -> ReconcileResult:
        """Reconcile a single node.

        Raises:
            RemoteCallError: If reading the node, the engine lookup or the node
                write fails. More than one VM named after the node also fails.
        """
        nlog = log.bind(node=node_name)
        nlog.info("Reconciling node")

        try:
            node = self._nodes.get(node_name)
        except NotFoundError:
            # deleted after the reconcile request was queued
            return ReconcileResult()
        except Exception as e:
            raise RemoteCallError(f"error getting node {node_name}: {e}") from e

        session = self._connections.get_connection(
            self._config.namespace, self._config.credentials_secret
        )
        vm = InstanceDirectory(session, node.name).get_by_name()

        if vm is None:
            nlog.info("Deleting node since its VM has been removed from the engine")
            self._call(lambda: self._nodes.delete(node), f"error deleting node {node.name}")
            return ReconcileResult()

        if node.provider_id:
            current = self._call(
                lambda: session.get_vm(vm.id), f"failed getting VM {vm.id} from the engine"
            )
            if current.status == VmStatus.DOWN:
                nlog.info(
                    "Node VM is down, requeuing in {secs:.0f}s", secs=NODE_VM_DOWN_REQUEUE
                )
                return ReconcileResult(requeue_after=NODE_VM_DOWN_REQUEUE)
            return ReconcileResult()

        nlog.info("Node has no provider id, setting it from VM {vm_id}", vm_id=vm.id)
        node.provider_id = PROVIDER_ID_PREFIX + vm.id
        self._call(lambda: self._nodes.update(node), f"failed updating node {node.name}")
        return ReconcileResult()

    @staticmethod
    def _call(fn: Callable[[], T], message: str) -> T:
        try:
            return fn()
        except ActuatorError:
            raise
        except Exception as e:
            raise RemoteCallError(f"{message}: {e}") from e
