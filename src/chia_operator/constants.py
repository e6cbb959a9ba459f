"""
Constants used throughout the Chia operator.

This module defines all constant values used by the operator including:
- Custom resource API coordinates
- Resource labels and naming patterns
- Default images and ports
- Status condition types and reasons
"""

# Custom resource API coordinates
API_GROUP = "k8s.chia.net"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

KIND_CHIACA = "ChiaCA"
KIND_CHIAFARMER = "ChiaFarmer"
KIND_CHIAWALLET = "ChiaWallet"
KIND_CHIASEEDER = "ChiaSeeder"

PLURAL_CHIACA = "chiacas"
PLURAL_CHIAFARMER = "chiafarmers"
PLURAL_CHIAWALLET = "chiawallets"
PLURAL_CHIASEEDER = "chiaseeders"

# Recommended labels applied to every child object
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_COMPONENT = "app.kubernetes.io/component"
OPERATOR_NAME = "chia-operator"
PART_OF = "chia"

# Label and annotation keys the operator set on a child at its last write
MANAGED_METADATA_ANNOTATION = f"{API_GROUP}/managed-metadata"

# Default images
DEFAULT_CHIA_IMAGE = "ghcr.io/chia-network/chia:latest"
DEFAULT_CHIA_EXPORTER_IMAGE = "ghcr.io/chia-network/chia-exporter:latest"
DEFAULT_CA_GEN_IMAGE = "ghcr.io/chia-network/chia-operator/ca-gen:latest"

# Chia container layout
CHIA_ROOT_PATH = "/chia-data"
CHIA_CA_PATH = "/chia-ca"
CHIA_KEY_PATH = "/key"
CHIA_ROOT_VOLUME = "chiaroot"
CHIA_CA_VOLUME = "secret-ca"
CHIA_KEY_VOLUME = "key"

# Ports (mainnet values; testnet peer ports are listed separately)
DAEMON_PORT = 55400
FARMER_PORT = 8447
FARMER_RPC_PORT = 8559
WALLET_PORT = 8449
WALLET_RPC_PORT = 9256
NODE_PORT = 8444
NODE_TESTNET_PORT = 58444
NODE_RPC_PORT = 8555
SEEDER_DNS_PORT = 53
CHIA_EXPORTER_PORT = 9914

# Resource naming patterns
METRICS_SERVICE_SUFFIX = "-metrics"
CA_GENERATOR_SUFFIX = "-chiaca-generator"

# Status condition constants (following Kubernetes conventions)
CONDITION_READY = "Ready"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

REASON_RECONCILED = "ReconciliationSucceeded"
REASON_CHILD_FAILED = "ChildReconcileFailed"
REASON_WAITING_FOR_CA_SECRET = "WaitingForCASecret"

# Readiness waiter defaults (overridable through settings)
DEFAULT_CA_SECRET_WAIT_ATTEMPTS = 6
DEFAULT_CA_SECRET_WAIT_INTERVAL = 5.0
DEFAULT_REQUEUE_DELAY = 30.0
