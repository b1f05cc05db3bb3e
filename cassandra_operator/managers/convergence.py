#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""The convergence engine.

Makes a single object in the cluster match its desired state:
 * create it when missing.
 * leave it alone when it already matches.
 * update it in place, or recreate it when its kind is immutable.
"""

from __future__ import annotations

import logging

from cassandra_operator.core.managed_object import ManagedObject
from cassandra_operator.core.outcome import ReconcileResult
from cassandra_operator.managers.k8s import K8sManager

logger = logging.getLogger(__name__)


class ConvergenceEngine:
    """Creates, updates or recreates managed objects."""

    def __init__(self, k8s: K8sManager):
        self.k8s = k8s

    def reconcile(self, desired: ManagedObject) -> ReconcileResult:
        """Converges one object towards its desired state.

        Raises:
            ObjectStoreError
        """
        actual = self.k8s.get(desired.resource, desired.name, desired.namespace)
        if actual is None:
            logger.info("Creating %s %s/%s", desired.kind, desired.namespace, desired.name)
            self.k8s.create(desired.build())
            return ReconcileResult.CREATED

        merged = desired.merge_forward(actual)
        if desired.equals(actual, merged):
            logger.debug("No updates for %s %s/%s", desired.kind, desired.namespace, desired.name)
            return ReconcileResult.UNCHANGED

        logger.info(
            "Updating %s %s/%s, changed: %s",
            desired.kind,
            desired.namespace,
            desired.name,
            ", ".join(desired.diff(actual, merged)),
        )
        if desired.immutable:
            self.k8s.delete(desired.resource, desired.name, desired.namespace)
            self.k8s.create(merged)
        else:
            self.k8s.replace(desired.apply(actual, merged))
        return ReconcileResult.UPDATED

    def reconcile_all(self, objects: list[ManagedObject]) -> list[ReconcileResult]:
        """Converges objects in order, stopping at the first failure.

        Raises:
            ObjectStoreError
        """
        return [self.reconcile(obj) for obj in objects]
