# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Names of the objects owned by a cassandra cluster."""


def active_admin_secret(cluster_name: str) -> str:
    """The immutable secret holding the credential known to work against the cluster."""
    return f"{cluster_name}-active-admin-secret"


def admin_auth_config_secret(cluster_name: str) -> str:
    """The secret holding config files derived from the active credential."""
    return f"{cluster_name}-auth-config-admin"


def dc(cluster_name: str, dc_name: str) -> str:
    return f"{cluster_name}-cassandra-{dc_name}"


def dc_service(cluster_name: str, dc_name: str) -> str:
    return dc(cluster_name, dc_name)


def reaper_deployment(cluster_name: str, dc_name: str) -> str:
    return f"{dc(cluster_name, dc_name)}-reaper"


def prober_service(cluster_name: str) -> str:
    return f"{cluster_name}-cassandra-prober"


def prober_ingress_host(cluster_name: str, namespace: str, domain: str) -> str:
    """Host under which a region's prober is reachable from the other regions."""
    return f"{prober_service(cluster_name)}-{namespace}.{domain}"


def prober_local_url(cluster_name: str, namespace: str) -> str:
    return f"http://{prober_service(cluster_name)}.{namespace}.svc.cluster.local"


def cql_endpoint(cluster_name: str, namespace: str, dc_name: str) -> str:
    return f"{dc_service(cluster_name, dc_name)}.{namespace}.svc.cluster.local"
