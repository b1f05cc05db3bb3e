#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""The region bootstrap decider.

Decides which credential a region is seeded with when it has none yet:
 * the operator provided one, when the region joins data or regions that may
   already be secured.
 * the built-in default one otherwise, to be rotated once the cluster is up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cassandra_operator.config.labels import component_labels
from cassandra_operator.config.literals import Components
from cassandra_operator.exceptions import ProberRequestError
from cassandra_operator.managers.k8s import K8sManager
from cassandra_operator.state.cluster_state import ClusterState
from cassandra_operator.utils.prober import ProberClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapDecision:
    """Whether to seed the region with the operator provided credential, and why."""

    use_provided_credentials: bool
    reason: str


class RegionBootstrapDecider:
    """Stateless: each decision is derived from the store and the other regions."""

    def __init__(self, k8s: K8sManager, prober: ProberClient):
        self.k8s = k8s
        self.prober = prober

    def decide(self, cluster: ClusterState) -> BootstrapDecision:
        """Picks the credential to bootstrap the region with.

        Raises:
            ObjectStoreError
        """
        pvcs = self.k8s.list_pvcs(
            component_labels(cluster.name, Components.CASSANDRA), cluster.namespace
        )
        if pvcs:
            return BootstrapDecision(True, "persistent volumes of a previous deployment exist")

        if cluster.has_unmanaged_regions:
            return BootstrapDecision(True, "unmanaged external regions are declared")

        for host in cluster.managed_region_hosts:
            if self._region_ready(host):
                return BootstrapDecision(True, f"region {host} is ready")

        return BootstrapDecision(False, "no existing data or ready region")

    def _region_ready(self, host: str) -> bool:
        try:
            return self.prober.region_ready(host)
        except ProberRequestError as e:
            logger.warning("Region %s is considered not ready: %s", host, e)
            return False
