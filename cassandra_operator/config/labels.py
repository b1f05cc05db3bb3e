# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Label sets used to select the objects of a cluster."""

from cassandra_operator.config.literals import Components, Labels


def cluster_labels(cluster_name: str) -> dict[str, str]:
    return {Labels.INSTANCE.value: cluster_name}


def component_labels(cluster_name: str, component: Components) -> dict[str, str]:
    return {**cluster_labels(cluster_name), Labels.COMPONENT.value: component.value}

