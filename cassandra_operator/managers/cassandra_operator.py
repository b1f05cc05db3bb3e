#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Operator for CassandraCluster resources.

One call to `CassandraOperator.reconcile` is one reconciliation pass over one
cluster. The invoking framework guarantees passes over the same cluster never
overlap, and re-invokes the pass when it returns a RetryAfter outcome.

A pass, in order:
 * warns about insecure setups.
 * reconciles the admin credential (bootstrap or rotation) and the secrets
   derived from it. Nothing consuming the credential is written before.
 * reconciles the objects of every DC.
 * publishes the readiness of the region and waits for the DCs to be ready,
   and for the other regions when the cassandra ports are on the host network.
 * rolls out the reaper, through the first region and the first DC.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from lightkube import Client

from cassandra_operator.config.literals import (
    CONFLICT_DELAY,
    PROBER_REQUEST_FAILED_DELAY,
    REAPER_NOT_READY_DELAY,
)
from cassandra_operator.config.operator_config import OperatorConfig
from cassandra_operator.core.managed_object import ManagedObject
from cassandra_operator.core.outcome import Done, Failed, Outcome, RetryAfter
from cassandra_operator.core.structured_config import DC
from cassandra_operator.exceptions import (
    AdminRoleUpdateError,
    AdminRoleVerificationError,
    ConfigurationError,
    ObjectStoreError,
    ProberRequestError,
)
from cassandra_operator.managers.admin_auth import AdminAuthManager
from cassandra_operator.managers.bootstrap import RegionBootstrapDecider
from cassandra_operator.managers.convergence import ConvergenceEngine
from cassandra_operator.managers.events import EventRecorder
from cassandra_operator.managers.k8s import K8sManager
from cassandra_operator.managers.readiness import ClusterReadiness, ReadinessGate
from cassandra_operator.state.cluster_state import ClusterState
from cassandra_operator.state.credentials import ActiveCredential
from cassandra_operator.utils.cql_config import CqlConfiguration
from cassandra_operator.utils.cql_connection import CqlConnection
from cassandra_operator.utils.prober import ProberClient

logger = logging.getLogger(__name__)


class ResourceTemplates(ABC):
    """Builds the workload objects of a cluster.

    The objects read the committed active credential from its secrets, the
    credential is only passed for the objects embedding a checksum of it.
    """

    @abstractmethod
    def dc_objects(
        self, cluster: ClusterState, dc: DC, credential: ActiveCredential
    ) -> list[ManagedObject]:
        """Services, config maps and the StatefulSet of one DC."""

    @abstractmethod
    def reaper_objects(
        self, cluster: ClusterState, dc: DC, credential: ActiveCredential
    ) -> list[ManagedObject]:
        """The reaper Deployment of one DC and what it needs."""


class CassandraOperator:
    """Runs reconciliation passes over CassandraCluster resources."""

    def __init__(
        self,
        config: OperatorConfig,
        k8s: K8sManager,
        templates: ResourceTemplates,
        prober_factory: Callable[[str], ProberClient] | None = None,
        connection_factory: Callable[[CqlConfiguration], CqlConnection] = CqlConnection,
    ):
        self.config = config
        self.k8s = k8s
        self.templates = templates
        self.engine = ConvergenceEngine(k8s)
        self.events = EventRecorder(k8s)
        self.gate = ReadinessGate(k8s, REAPER_NOT_READY_DELAY)
        self.prober_factory = prober_factory or self._default_prober
        self.connection_factory = connection_factory

    @classmethod
    def from_config(
        cls, config: OperatorConfig, templates: ResourceTemplates, client: Client | None = None
    ) -> CassandraOperator:
        """Builds an operator talking to the cluster it runs in."""
        return cls(config, K8sManager(config.namespace, client), templates)

    def _default_prober(self, base_url: str) -> ProberClient:
        return ProberClient(base_url, self.config.prober_username, self.config.prober_password)

    def reconcile(self, resource: dict) -> Outcome:
        """Runs one pass over the raw CassandraCluster object."""
        try:
            cluster = ClusterState(resource)
            logger.debug("Reconciling %r", cluster)
            return self._reconcile(cluster)
        except ConfigurationError as e:
            logger.error("Invalid configuration: %s", e)
            return Failed(str(e), retryable=False)
        except ObjectStoreError as e:
            if e.is_conflict:
                logger.info("Conflict, retrying: %s", e)
                return RetryAfter(CONFLICT_DELAY, str(e))
            logger.error("Object store error: %s", e)
            return Failed(str(e))
        except ProberRequestError as e:
            logger.warning("Prober unavailable: %s", e)
            return RetryAfter(PROBER_REQUEST_FAILED_DELAY, str(e))
        except (AdminRoleUpdateError, AdminRoleVerificationError) as e:
            logger.error("Admin credential rotation failed: %s", e)
            return Failed(str(e))

    def _reconcile(self, cluster: ClusterState) -> Outcome:
        prober = self.prober_factory(cluster.prober_url)
        readiness = ClusterReadiness(self.k8s, prober, self.events)
        admin_auth = AdminAuthManager(
            self.k8s,
            self.engine,
            RegionBootstrapDecider(self.k8s, prober),
            self.events,
            self.connection_factory,
        )

        admin_auth.warn_insecure_setup(cluster)

        unready = readiness.unready_dcs(cluster)
        active = admin_auth.reconcile(cluster, cluster_ready=not unready)

        for dc in cluster.dcs:
            self.engine.reconcile_all(self.templates.dc_objects(cluster, dc, active))

        if unready:
            readiness.publish_region_status(cluster, False)
            logger.info("Waiting for DCs %s of %r to be ready", ", ".join(unready), cluster)
            return RetryAfter(self.config.retry_delay, f"DCs not ready: {', '.join(unready)}")

        readiness.publish_region_status(cluster, True)

        if cluster.spec.host_port.enabled:
            regions = readiness.unready_regions(cluster)
            if regions:
                logger.warning("Not all regions of %r are ready: %s", cluster, ", ".join(regions))
                return RetryAfter(
                    self.config.retry_delay, f"regions not ready: {', '.join(regions)}"
                )

        reaper = cluster.spec.reaper
        if reaper is None:
            return Done()

        if not readiness.first_region_ready(cluster):
            return RetryAfter(REAPER_NOT_READY_DELAY, "waiting for the first region reaper")

        outcome = self.gate.proceed(
            cluster,
            cluster.spec.reaper_dcs,
            lambda dc: self.engine.reconcile_all(
                self.templates.reaper_objects(cluster, dc, active)
            ),
            reaper.replicas,
        )
        if isinstance(outcome, Done):
            readiness.publish_reaper_status(cluster, True)
        return outcome
