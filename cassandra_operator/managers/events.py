#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Operational events attached to a CassandraCluster."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from lightkube.models.core_v1 import EventSource
from lightkube.models.meta_v1 import ObjectMeta
from lightkube.resources.core_v1 import Event

from cassandra_operator.config.literals import EVENT_SOURCE, EventReason, EventType
from cassandra_operator.exceptions import ObjectStoreError
from cassandra_operator.managers.k8s import K8sManager
from cassandra_operator.state.cluster_state import ClusterState

logger = logging.getLogger(__name__)


class EventRecorder:
    """Records events. Events are best effort: a failure to write one is only logged."""

    def __init__(self, k8s: K8sManager):
        self.k8s = k8s

    def normal(self, cluster: ClusterState, reason: EventReason, message: str) -> None:
        """Records a Normal event."""
        logger.info("%r: %s: %s", cluster, reason.value, message)
        self._record(cluster, EventType.NORMAL, reason, message)

    def warning(self, cluster: ClusterState, reason: EventReason, message: str) -> None:
        """Records a Warning event."""
        logger.warning("%r: %s: %s", cluster, reason.value, message)
        self._record(cluster, EventType.WARNING, reason, message)

    def _record(
        self, cluster: ClusterState, type_: EventType, reason: EventReason, message: str
    ) -> None:
        now = datetime.now(timezone.utc)
        event = Event(
            metadata=ObjectMeta(generateName=f"{cluster.name}.", namespace=cluster.namespace),
            involvedObject=cluster.object_reference,
            type=type_.value,
            reason=reason.value,
            message=message,
            source=EventSource(component=EVENT_SOURCE),
            firstTimestamp=now,
            lastTimestamp=now,
            count=1,
        )
        try:
            self.k8s.create_event(event)
        except ObjectStoreError as e:
            logger.warning("Failed to record %s event for %r: %s", reason.value, cluster, e)
