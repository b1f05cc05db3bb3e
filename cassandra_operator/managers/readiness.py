#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Readiness checks and the sequential rollout gate.

None of these block: a condition that is not met yet turns into a RetryAfter
outcome and the pass is invoked again later.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from lightkube.resources.apps_v1 import Deployment, StatefulSet

from cassandra_operator.config import names
from cassandra_operator.config.literals import REAPER_NOT_READY_DELAY, EventReason
from cassandra_operator.core.outcome import Done, Outcome, RetryAfter
from cassandra_operator.core.structured_config import DC
from cassandra_operator.exceptions import ProberRequestError
from cassandra_operator.managers.events import EventRecorder
from cassandra_operator.managers.k8s import K8sManager
from cassandra_operator.state.cluster_state import ClusterState
from cassandra_operator.utils.prober import ProberClient

logger = logging.getLogger(__name__)


def ready_replicas(obj: StatefulSet | Deployment | None) -> int:
    """Observed ready replicas, 0 for a missing object."""
    if obj is None or obj.status is None:
        return 0
    return obj.status.readyReplicas or 0


class ReadinessGate:
    """Serialises the rollout of a dependent component through the first region.

    Each DC gets a reaper deployment. The first one initialises the reaper
    schema, so the others only roll out once it is ready.
    """

    def __init__(self, k8s: K8sManager, delay: float = REAPER_NOT_READY_DELAY):
        self.k8s = k8s
        self.delay = delay

    def proceed(
        self,
        cluster: ClusterState,
        ordered_dcs: Sequence[DC],
        reconcile: Callable[[DC], object],
        required_replicas: int,
    ) -> Outcome:
        """Reconciles the first DC, and the others once its deployment is ready.

        Raises:
            ObjectStoreError
        """
        if not ordered_dcs:
            return Done()

        first, *others = ordered_dcs
        reconcile(first)
        name = names.reaper_deployment(cluster.name, first.name)
        deployment = self.k8s.get(Deployment, name, cluster.namespace)
        ready = ready_replicas(deployment)
        if ready < required_replicas:
            logger.info(
                "Waiting for %s to be ready (%d/%d) before rolling out the other DCs",
                name,
                ready,
                required_replicas,
            )
            return RetryAfter(self.delay, f"{name} is not ready")

        for dc in others:
            reconcile(dc)
        return Done()


class ClusterReadiness:
    """Readiness of the local DCs and of the other regions."""

    def __init__(self, k8s: K8sManager, prober: ProberClient, events: EventRecorder):
        self.k8s = k8s
        self.prober = prober
        self.events = events

    def unready_dcs(self, cluster: ClusterState) -> list[str]:
        """Local DCs whose StatefulSet does not have exactly the declared replicas ready.

        Raises:
            ObjectStoreError
        """
        unready = []
        for dc in cluster.dcs:
            sts = self.k8s.get(StatefulSet, names.dc(cluster.name, dc.name), cluster.namespace)
            if sts is None or ready_replicas(sts) != dc.replicas:
                unready.append(dc.name)
        return unready

    def unready_regions(self, cluster: ClusterState) -> list[str]:
        """Prober hosts of the managed external regions not reporting their DCs as ready.

        An unreachable region is not ready.
        """
        unready = []
        for host in cluster.managed_region_hosts:
            try:
                ready = self.prober.region_ready(host)
            except ProberRequestError as e:
                logger.warning("Unable to get the status of region %s: %s", host, e)
                ready = False
            if not ready:
                unready.append(host)
        return unready

    def publish_region_status(self, cluster: ClusterState, ready: bool) -> None:
        """Reports the readiness of this region to the local prober.

        Raises:
            ProberRequestError
        """
        logger.debug("Reporting region-ready=%s for %r", ready, cluster)
        self.prober.update_region_status(ready)

    def publish_reaper_status(self, cluster: ClusterState, ready: bool) -> None:
        """Reports the readiness of the reaper of this region to the local prober.

        Raises:
            ProberRequestError
        """
        logger.debug("Reporting reaper-ready=%s for %r", ready, cluster)
        self.prober.update_reaper_status(ready)

    def first_region_ready(self, cluster: ClusterState) -> bool:
        """Whether this region may initialise its reaper.

        The first region (in sorted prober host order) always may. The others
        wait until the first one reports its reaper as ready. An unreachable
        region is not ready.
        """
        if not cluster.spec.external_regions.managed or cluster.is_first_region:
            return True

        first = cluster.all_region_hosts[0]
        try:
            ready = self.prober.reaper_ready(first)
        except ProberRequestError as e:
            logger.warning("Cannot get the reaper status of region %s: %s", first, e)
            ready = False
        if not ready:
            self.events.normal(
                cluster,
                EventReason.REGION_INIT,
                f"reaper initialization is paused, waiting for region {first!r} to be ready",
            )
        return ready
