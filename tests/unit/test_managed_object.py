# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

import pytest
from lightkube.models.apps_v1 import StatefulSetSpec
from lightkube.models.core_v1 import PersistentVolumeClaimStatus, PodTemplateSpec
from lightkube.models.meta_v1 import LabelSelector
from lightkube.resources.apps_v1 import StatefulSet
from lightkube.resources.core_v1 import ConfigMap, PersistentVolumeClaim

from cassandra_operator.core.managed_object import (
    ConfigMapObject,
    SecretObject,
    ServiceObject,
    StatefulSetObject,
    _drop,
)

from .helpers import ObjectMetaFactory, SecretFactory, service


def test_wrong_kind():
    with pytest.raises(TypeError):
        SecretObject(ConfigMap(metadata=ObjectMetaFactory.build()))


def test_missing_identity():
    with pytest.raises(ValueError):
        ConfigMapObject(ConfigMap(metadata=ObjectMetaFactory.build(namespace=None)))


def test_immutable():
    assert SecretObject(SecretFactory.build(immutable=True)).immutable
    assert not SecretObject(SecretFactory.build()).immutable
    assert not ServiceObject(service()).immutable


def test_drop():
    value = {"a": {"b": 1, "c": 2}, "l": [{"x": 1, "y": 2}, {"x": 3}]}
    _drop(value, ("a", "b"))
    _drop(value, ("l", "*", "x"))
    _drop(value, ("missing", "path"))
    assert value == {"a": {"c": 2}, "l": [{"y": 2}, {}]}


def test_empty_values_are_equal():
    managed = ConfigMapObject(ConfigMap(metadata=ObjectMetaFactory.build(name="cm"), data={}))
    actual = ConfigMap(metadata=ObjectMetaFactory.build(name="cm", labels={}))
    assert managed.equals(actual, managed.build())


def test_diff():
    managed = ConfigMapObject(
        ConfigMap(metadata=ObjectMetaFactory.build(name="cm", labels={"a": "b"}), data={"k": "v"})
    )
    actual = ConfigMap(metadata=ObjectMetaFactory.build(name="cm"), data={"k": "w"})
    assert managed.diff(actual, managed.build()) == ["data", "metadata.labels"]


def statefulset_with_claim(status=None) -> StatefulSet:
    return StatefulSet(
        metadata=ObjectMetaFactory.build(name="sts"),
        spec=StatefulSetSpec(
            selector=LabelSelector(matchLabels={"app": "cassandra"}),
            serviceName="sts",
            template=PodTemplateSpec(),
            volumeClaimTemplates=[
                PersistentVolumeClaim(
                    metadata=ObjectMetaFactory.build(name="data"), status=status
                )
            ],
        ),
    )


def test_server_defaults_are_ignored():
    managed = StatefulSetObject(statefulset_with_claim())
    actual = statefulset_with_claim(status=PersistentVolumeClaimStatus(phase="Pending"))
    assert managed.equals(actual, managed.build())


def test_service_keeps_allocated_fields():
    actual = service(type="NodePort", clusterIP="10.0.0.1")
    actual.spec.ports[0].nodePort = 30042
    managed = ServiceObject(service(type="NodePort"))

    merged = managed.merge_forward(actual)

    assert merged.spec.clusterIP == "10.0.0.1"
    assert merged.spec.ports[0].nodePort == 30042
    assert managed.equals(actual, merged)


def test_apply_keeps_resource_version(cluster):
    actual = SecretFactory.build(data={"k": "dg=="})
    actual.metadata.resourceVersion = "42"
    managed = SecretObject(actual)
    desired = SecretObject(
        SecretFactory.build(data={"k": "dw=="}), cluster.owner_reference
    ).build()

    updated = managed.apply(actual, desired)

    assert updated.metadata.resourceVersion == "42"
    assert updated.data == {"k": "dw=="}
    assert updated.metadata.ownerReferences == [cluster.owner_reference]
