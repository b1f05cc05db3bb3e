#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Manager for handling k8s resources of a cassandra cluster."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from lightkube import Client
from lightkube.core.exceptions import ApiError
from lightkube.core.resource import NamespacedResource
from lightkube.resources.core_v1 import Event, PersistentVolumeClaim

from cassandra_operator.exceptions import ObjectStoreError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=NamespacedResource)


class K8sManager:
    """Manages the Kubernetes objects of the clusters living in one namespace.

    Every call either succeeds, returns None when a read targets a missing
    object, or raises an ObjectStoreError carrying the status code of the API
    server.
    """

    def __init__(self, namespace: str, client: Client | None = None):
        self.namespace = namespace
        self._client = client

    @property
    def client(self) -> Client:
        """Lazily created lightkube client."""
        if self._client is None:
            self._client = Client(namespace=self.namespace, field_manager="cassandra-operator")
        return self._client

    def _call(self, operation: str, kind: str, name: str, fn: Callable[[], Any]) -> Any:
        try:
            return fn()
        except ApiError as e:
            raise ObjectStoreError(
                operation, kind, name, e.status.code, e.status.message or ""
            ) from e

    def get(self, resource: type[R], name: str, namespace: str | None = None) -> R | None:
        """Reads an object, None if it does not exist.

        Raises:
            ObjectStoreError
        """
        try:
            return self.client.get(resource, name, namespace=namespace or self.namespace)
        except ApiError as e:
            if e.status.code == 404:
                return None
            raise ObjectStoreError(
                "get", resource.__name__, name, e.status.code, e.status.message or ""
            ) from e

    def create(self, obj: R) -> R:
        """Creates the object.

        Raises:
            ObjectStoreError
        """
        name = obj.metadata.name  # type: ignore[union-attr]
        return self._call("create", type(obj).__name__, name, lambda: self.client.create(obj))

    def replace(self, obj: R) -> R:
        """Replaces the object, failing with a conflict if it changed since read.

        Raises:
            ObjectStoreError
        """
        name = obj.metadata.name  # type: ignore[union-attr]
        return self._call("update", type(obj).__name__, name, lambda: self.client.replace(obj))

    def delete(self, resource: type[R], name: str, namespace: str | None = None) -> None:
        """Deletes an object. Deleting a missing object is not an error.

        Raises:
            ObjectStoreError
        """
        try:
            self.client.delete(resource, name, namespace=namespace or self.namespace)
        except ApiError as e:
            if e.status.code == 404:
                return
            raise ObjectStoreError(
                "delete", resource.__name__, name, e.status.code, e.status.message or ""
            ) from e

    def list_pvcs(self, labels: dict[str, str], namespace: str | None = None) -> list:
        """Lists the persistent volume claims matching all the labels.

        Raises:
            ObjectStoreError
        """
        return self._call(
            "list",
            PersistentVolumeClaim.__name__,
            ",".join(f"{k}={v}" for k, v in labels.items()),
            lambda: list(
                self.client.list(
                    PersistentVolumeClaim,
                    namespace=namespace or self.namespace,
                    labels=labels,
                )
            ),
        )

    def create_event(self, event: Event) -> Event:
        """Records an event.

        Raises:
            ObjectStoreError
        """
        name = event.metadata.name or event.metadata.generateName  # type: ignore[union-attr]
        return self._call("create", "Event", name, lambda: self.client.create(event))
