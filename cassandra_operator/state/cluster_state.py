#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""The state of one CassandraCluster, as seen at the start of a pass.

This is a read only view over the custom resource: every derived value (names,
hosts, owner references, etc) is computed from it and nothing is kept across
passes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import cached_property
from typing import Any

from lightkube.models.core_v1 import ObjectReference
from lightkube.models.meta_v1 import OwnerReference
from pydantic import ValidationError

from cassandra_operator.config import names
from cassandra_operator.config.labels import cluster_labels
from cassandra_operator.config.literals import (
    API_VERSION,
    CLUSTER_KIND,
    InternodeEncryption,
    JmxAuthentication,
)
from cassandra_operator.core.structured_config import DC, CassandraClusterSpec
from cassandra_operator.exceptions import InvalidClusterSpecError

logger = logging.getLogger(__name__)


class ClusterState:
    """Wraps the raw CassandraCluster object."""

    def __init__(self, resource: Mapping[str, Any]):
        self.resource = resource
        metadata = resource.get("metadata") or {}
        self.name: str = metadata.get("name", "")
        self.namespace: str = metadata.get("namespace", "")
        self.uid: str = metadata.get("uid", "")
        if not self.name or not self.namespace:
            raise InvalidClusterSpecError("CassandraCluster has no name or namespace")

    def __repr__(self) -> str:
        """Kind and identity."""
        return f"{CLUSTER_KIND}({self.namespace}/{self.name})"

    @cached_property
    def spec(self) -> CassandraClusterSpec:
        """The validated spec.

        Raises:
            InvalidClusterSpecError
        """
        try:
            return CassandraClusterSpec.model_validate(self.resource.get("spec") or {})
        except ValidationError as e:
            raise InvalidClusterSpecError(f"invalid spec for {self!r}: {e}") from e

    @property
    def labels(self) -> dict[str, str]:
        """Labels every object of the cluster carries."""
        return cluster_labels(self.name)

    @property
    def owner_reference(self) -> OwnerReference:
        """Owner reference naming the cluster as controller of its objects."""
        return OwnerReference(
            apiVersion=API_VERSION,
            kind=CLUSTER_KIND,
            name=self.name,
            uid=self.uid,
            controller=True,
            blockOwnerDeletion=True,
        )

    @property
    def object_reference(self) -> ObjectReference:
        """Reference to the custom resource, for events."""
        return ObjectReference(
            apiVersion=API_VERSION,
            kind=CLUSTER_KIND,
            name=self.name,
            namespace=self.namespace,
            uid=self.uid,
        )

    # Credentials
    @property
    def admin_secret_name(self) -> str:
        """The operator supplied secret holding the desired admin credential."""
        return self.spec.admin_role_secret_name

    @property
    def active_admin_secret_name(self) -> str:
        return names.active_admin_secret(self.name)

    @property
    def admin_auth_config_secret_name(self) -> str:
        return names.admin_auth_config_secret(self.name)

    @property
    def persistent(self) -> bool:
        """Whether the cassandra data outlives the pods."""
        return self.spec.cassandra.persistence.enabled

    @property
    def jmx_local_files(self) -> bool:
        """Whether JMX authenticates against files derived from the admin credential."""
        return self.spec.jmx.authentication == JmxAuthentication.LOCAL_FILES.value

    # Topology
    @property
    def dcs(self) -> list[DC]:
        return self.spec.dcs

    @property
    def has_external_regions(self) -> bool:
        return bool(self.spec.external_regions)

    @property
    def has_unmanaged_regions(self) -> bool:
        return bool(self.spec.external_regions.unmanaged)

    @property
    def internode_encryption_disabled(self) -> bool:
        return self.spec.encryption.server.internode_encryption == InternodeEncryption.NONE.value

    @property
    def cql_exposed_unencrypted(self) -> bool:
        """The CQL port is published on the host network without client encryption."""
        host_port = self.spec.host_port
        return (
            host_port.enabled
            and "cql" in host_port.ports
            and not self.spec.encryption.client.enabled
        )

    def cql_hosts(self) -> list[str]:
        """CQL endpoints of the local DCs."""
        return [names.cql_endpoint(self.name, self.namespace, dc.name) for dc in self.dcs]

    @property
    def prober_url(self) -> str:
        """The prober of this region, reached from inside the cluster."""
        return names.prober_local_url(self.name, self.namespace)

    @property
    def local_prober_host(self) -> str:
        """The prober of this region, as the other regions reach it."""
        return names.prober_ingress_host(
            self.name, self.namespace, self.spec.prober.ingress.domain
        )

    @property
    def managed_region_hosts(self) -> list[str]:
        """Prober hosts of the managed external regions, in declaration order."""
        return [
            names.prober_ingress_host(self.name, region.namespace or self.namespace, region.domain)
            for region in self.spec.external_regions.managed
        ]

    @property
    def all_region_hosts(self) -> list[str]:
        """Prober hosts of every managed region, this one included, sorted.

        Every region computes the same list, so the first host names the same
        region everywhere.
        """
        return sorted({self.local_prober_host, *self.managed_region_hosts})

    @property
    def is_first_region(self) -> bool:
        """Whether this region goes first when rolling out across regions."""
        return self.all_region_hosts[0] == self.local_prober_host
