#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Managed object definitions.

A managed object wraps the desired state of one Kubernetes object together with
what the convergence engine needs to know about its kind:
 * identity: the name and namespace of the object.
 * payload: the fields holding the content of the object (data, spec, ...).
 * immutable: whether the store rejects in-place edits of the payload.
 * owner: the owner reference to attach, if any.

Each kind also defines which fields the API server fills in on its own and
must survive an update (merge forward), and which server defaulted fields must
be ignored when comparing the actual and desired objects.
"""

from __future__ import annotations

from copy import deepcopy
from typing import Any, ClassVar, Generic, TypeVar

from lightkube.core.resource import NamespacedResource
from lightkube.models.meta_v1 import OwnerReference
from lightkube.resources.apps_v1 import Deployment, StatefulSet
from lightkube.resources.core_v1 import ConfigMap, Secret, Service
from typing_extensions import override

R = TypeVar("R", bound=NamespacedResource)

POD_TEMPLATE_DEFAULTS = (
    ("spec", "template", "spec", "schedulerName"),
    ("spec", "template", "spec", "deprecatedServiceAccount"),
)


def _prune(value: Any) -> Any:
    """Drops empty values so that a missing field equals an empty one."""
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if v not in (None, {}, [])}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


def _drop(value: Any, path: tuple[str, ...]) -> None:
    """Removes `path` from a nested dict. `*` walks every item of a list."""
    if not path:
        return
    head, *rest = path
    if head == "*" and isinstance(value, list):
        for item in value:
            _drop(item, tuple(rest))
        return
    if not isinstance(value, dict) or head not in value:
        return
    if not rest:
        del value[head]
        return
    _drop(value[head], tuple(rest))


class ManagedObject(Generic[R]):
    """Desired state of one object, generic over its kind."""

    resource: ClassVar[type[NamespacedResource]]
    payload_fields: ClassVar[tuple[str, ...]] = ("spec",)
    ignored_fields: ClassVar[tuple[tuple[str, ...], ...]] = ()

    def __init__(self, obj: R, owner: OwnerReference | None = None):
        if not isinstance(obj, self.resource):
            raise TypeError(f"{type(self).__name__} manages {self.resource.__name__} objects")
        if not obj.metadata or not obj.metadata.name or not obj.metadata.namespace:
            raise ValueError("Managed objects need a name and a namespace.")
        self.obj = obj
        self.owner = owner

    def __repr__(self) -> str:
        """Kind and identity."""
        return f"{self.kind}({self.namespace}/{self.name})"

    @property
    def kind(self) -> str:
        """The kind of the object."""
        return self.resource.__name__

    @property
    def name(self) -> str:
        """The name of the object."""
        return self.obj.metadata.name  # type: ignore[union-attr]

    @property
    def namespace(self) -> str:
        """The namespace of the object."""
        return self.obj.metadata.namespace  # type: ignore[union-attr]

    @property
    def immutable(self) -> bool:
        """Whether updates must go through delete and create."""
        return False

    def build(self) -> R:
        """The object to write, with the owner reference attached."""
        obj = deepcopy(self.obj)
        if self.owner:
            obj.metadata.ownerReferences = [self.owner]  # type: ignore[union-attr]
        return obj

    def merge_forward(self, actual: R) -> R:
        """Returns the object to write, keeping the state the system manages on `actual`.

        Annotations present on the actual object but unknown to the desired one are
        kept. The desired value wins on conflicting keys.
        """
        desired = self.build()
        annotations = {
            **(actual.metadata.annotations or {}),  # type: ignore[union-attr]
            **(desired.metadata.annotations or {}),  # type: ignore[union-attr]
        }
        desired.metadata.annotations = annotations or None  # type: ignore[union-attr]
        self.carry_generated_fields(actual, desired)
        return desired

    def carry_generated_fields(self, actual: R, desired: R) -> None:
        """Copies the fields assigned by the cluster from `actual` into `desired`."""
        return

    def comparable(self, obj: R) -> dict[str, Any]:
        """The part of `obj` that is owned by the operator."""
        raw = obj.to_dict()
        metadata = raw.get("metadata", {})
        view: dict[str, Any] = {
            "metadata": {
                "labels": metadata.get("labels"),
                "annotations": metadata.get("annotations"),
                "ownerReferences": metadata.get("ownerReferences"),
            }
        }
        for field in self.payload_fields:
            view[field] = deepcopy(raw.get(field))
        for path in self.ignored_fields:
            _drop(view, path)
        return _prune(view)

    def equals(self, actual: R, desired: R) -> bool:
        """Semantic equality, ignoring what the store populates."""
        return self.comparable(actual) == self.comparable(desired)

    def diff(self, actual: R, desired: R) -> list[str]:
        """Top level fields that differ, for logging."""
        left, right = self.comparable(actual), self.comparable(desired)
        keys = sorted(set(left) | set(right))
        changed = []
        for key in keys:
            if key == "metadata":
                changed.extend(
                    f"metadata.{sub}"
                    for sub in ("labels", "annotations", "ownerReferences")
                    if left.get(key, {}).get(sub) != right.get(key, {}).get(sub)
                )
            elif left.get(key) != right.get(key):
                changed.append(key)
        return changed

    def apply(self, actual: R, desired: R) -> R:
        """Copies the payload and metadata of `desired` over `actual`.

        The resource version of `actual` is kept so the write fails on conflict.
        """
        updated = deepcopy(actual)
        updated.metadata.labels = desired.metadata.labels  # type: ignore[union-attr]
        updated.metadata.annotations = desired.metadata.annotations  # type: ignore[union-attr]
        updated.metadata.ownerReferences = (  # type: ignore[union-attr]
            desired.metadata.ownerReferences  # type: ignore[union-attr]
        )
        for field in self.payload_fields:
            setattr(updated, field, deepcopy(getattr(desired, field)))
        return updated


class SecretObject(ManagedObject[Secret]):
    """A managed Secret. Immutable when created with `immutable: true`."""

    resource = Secret
    payload_fields = ("data", "type", "immutable")

    @property
    @override
    def immutable(self) -> bool:
        """Whether the secret is immutable."""
        return bool(self.obj.immutable)


class ConfigMapObject(ManagedObject[ConfigMap]):
    """A managed ConfigMap."""

    resource = ConfigMap
    payload_fields = ("data", "binaryData", "immutable")

    @property
    @override
    def immutable(self) -> bool:
        """Whether the config map is immutable."""
        return bool(self.obj.immutable)


class ServiceObject(ManagedObject[Service]):
    """A managed Service, keeping the addresses and ports the cluster allocated."""

    resource = Service
    ignored_fields = (
        ("spec", "externalTrafficPolicy"),
        ("spec", "internalTrafficPolicy"),
    )

    @override
    def carry_generated_fields(self, actual: Service, desired: Service) -> None:
        """ClusterIP is immutable once created, node ports are allocated by the cluster."""
        if not actual.spec or not desired.spec:
            return
        for field in ("clusterIP", "clusterIPs", "ipFamilies", "ipFamilyPolicy"):
            if getattr(desired.spec, field) is None:
                setattr(desired.spec, field, deepcopy(getattr(actual.spec, field)))
        if desired.spec.healthCheckNodePort is None:
            desired.spec.healthCheckNodePort = actual.spec.healthCheckNodePort

        allocated = {port.name: port.nodePort for port in actual.spec.ports or []}
        for port in desired.spec.ports or []:
            if not port.nodePort and allocated.get(port.name):
                port.nodePort = allocated[port.name]


class StatefulSetObject(ManagedObject[StatefulSet]):
    """A managed StatefulSet."""

    resource = StatefulSet
    ignored_fields = POD_TEMPLATE_DEFAULTS + (
        ("spec", "volumeClaimTemplates", "*", "status"),
        ("spec", "volumeClaimTemplates", "*", "apiVersion"),
        ("spec", "volumeClaimTemplates", "*", "kind"),
    )


class DeploymentObject(ManagedObject[Deployment]):
    """A managed Deployment."""

    resource = Deployment
    ignored_fields = POD_TEMPLATE_DEFAULTS
