"""Well-known keys, prefixes and timeouts shared by the actuator."""

from __future__ import annotations

# =============================================================================
# Resource keys
# =============================================================================

PROVIDER_ID_PREFIX = "ovirt://"
VM_ID_ANNOTATION_KEY = "VmId"
INSTANCE_STATE_ANNOTATION_KEY = "machine.openshift.io/instance-state"
CLUSTER_ID_LABEL = "machine.openshift.io/cluster-api-cluster"
USER_DATA_SECRET_KEY = "userData"

DEFAULT_NAMESPACE = "openshift-machine-api"
DEFAULT_CREDENTIALS_SECRET = "ovirt-credentials"

# =============================================================================
# Timeouts (seconds)
# =============================================================================

VM_PROVISION_TIMEOUT = 60.0
VM_PROVISION_INTERVAL = 5.0

DISK_EXTEND_TIMEOUT = 20 * 60.0
DISK_EXTEND_INTERVAL = 10.0

INSTANCE_STATUS_TIMEOUT = 5 * 60.0
INSTANCE_STATUS_INTERVAL = 10.0

NODE_VM_DOWN_REQUEUE = 60.0

# =============================================================================
# Sizes
# =============================================================================

MIB = 2**20
GIB = 2**30
