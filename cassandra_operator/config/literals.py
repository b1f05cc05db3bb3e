# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Literal strings and constants for the cassandra operator.

This module should contain the literals used across the operator (secret keys,
ports, delays, enums, etc).
"""

from enum import Enum

API_GROUP = "db.ibm.com"
API_VERSION = f"{API_GROUP}/v1alpha1"
CLUSTER_KIND = "CassandraCluster"
EVENT_SOURCE = "cassandra-cluster"

# The role and password every fresh Cassandra node boots with.
DEFAULT_ROLE = "cassandra"
DEFAULT_PASSWORD = "cassandra"


class SecretKeys(str, Enum):
    """Keys of the credential secrets consumed by dependent components."""

    ADMIN_ROLE = "admin-role"
    ADMIN_PASSWORD = "admin-password"
    JMX_CREDENTIALS = "jmx-credentials"
    CQLSHRC = "cqlshrc"
    ADMIN_USERNAME_FILE = "admin_username"
    ADMIN_PASSWORD_FILE = "admin_password"
    JMX_REMOTE_PASSWORD = "jmxremote.password"
    JMX_REMOTE_ACCESS = "jmxremote.access"


class Labels(str, Enum):
    """Label and annotation keys set on managed objects."""

    INSTANCE = "cassandra-cluster-instance"
    COMPONENT = "cassandra-cluster-component"


class Components(str, Enum):
    """Components of a cassandra cluster."""

    CASSANDRA = "cassandra"


class CassandraPorts(int, Enum):
    """The default Cassandra ports."""

    CQL_PORT = 9042


class JmxAuthentication(str, Enum):
    """How JMX clients authenticate against Cassandra."""

    INTERNAL = "internal"
    LOCAL_FILES = "local_files"


class InternodeEncryption(str, Enum):
    """Cassandra internode encryption modes."""

    NONE = "none"
    RACK = "rack"
    DC = "dc"
    ALL = "all"


class EventType(str, Enum):
    """Kubernetes event types."""

    NORMAL = "Normal"
    WARNING = "Warning"


class EventReason(str, Enum):
    """Reasons attached to the events emitted for a cluster."""

    ADMIN_ROLE_SECRET_NOT_FOUND = "AdminRoleSecretNotFound"
    ADMIN_ROLE_SECRET_INVALID = "AdminRoleSecretInvalid"
    ADMIN_ROLE_UPDATE_FAILED = "AdminRoleUpdateFailed"
    ADMIN_ROLE_CREATED = "AdminRoleCreated"
    ADMIN_ROLE_CHANGED = "AdminRoleChanged"
    INSECURE_SETUP = "InsecureSetup"
    REGION_INIT = "RegionInit"


DEFAULT_DC_REPLICAS = 3
REAPER_REPLICAS = 1
DEFAULT_HOST_PORTS = ["tls", "cql"]

# Verification of a rotated credential: attempt n waits n * INITIAL_RETRY_DELAY seconds.
RETRY_ATTEMPTS = 5
INITIAL_RETRY_DELAY = 2

# Re-invocation delays (seconds).
CLUSTER_NOT_READY_DELAY = 10
REAPER_NOT_READY_DELAY = 10
PROBER_REQUEST_FAILED_DELAY = 5
CONFLICT_DELAY = 1

PROBER_TIMEOUT = 5
CQL_CONNECT_TIMEOUT = 5
