# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

from cassandra_operator.config.literals import REAPER_NOT_READY_DELAY, EventReason
from cassandra_operator.core.outcome import Done, RetryAfter
from cassandra_operator.exceptions import ProberRequestError
from cassandra_operator.managers.events import EventRecorder
from cassandra_operator.managers.readiness import ClusterReadiness, ReadinessGate
from cassandra_operator.state.cluster_state import ClusterState

from .helpers import reaper_deployment, statefulset


def test_gate_waits_for_the_first_dc(k8s, cluster):
    k8s.add(reaper_deployment("dc1", ready=0))
    reconciled = []

    outcome = ReadinessGate(k8s).proceed(
        cluster, cluster.dcs, lambda dc: reconciled.append(dc.name), 1
    )

    assert outcome == RetryAfter(
        REAPER_NOT_READY_DELAY, "test-cluster-cassandra-dc1-reaper is not ready"
    )
    assert reconciled == ["dc1"]


def test_gate_proceeds_once_the_first_dc_is_ready(k8s, cluster):
    k8s.add(reaper_deployment("dc1", ready=1))
    reconciled = []

    outcome = ReadinessGate(k8s).proceed(
        cluster, cluster.dcs, lambda dc: reconciled.append(dc.name), 1
    )

    assert outcome == Done()
    assert reconciled == ["dc1", "dc2"]


def test_gate_missing_deployment_is_not_ready(k8s, cluster):
    outcome = ReadinessGate(k8s).proceed(cluster, cluster.dcs, lambda dc: None, 1)
    assert isinstance(outcome, RetryAfter)


def test_gate_without_dcs(k8s, cluster):
    assert ReadinessGate(k8s).proceed(cluster, [], lambda dc: None, 1) == Done()


def test_unready_dcs(k8s, cluster, prober):
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))
    assert readiness.unready_dcs(cluster) == ["dc1", "dc2"]

    k8s.add(statefulset("dc1", ready=1))
    k8s.add(statefulset("dc2", ready=0))
    assert readiness.unready_dcs(cluster) == ["dc2"]

    k8s.add(statefulset("dc2", ready=1))
    assert readiness.unready_dcs(cluster) == []


def test_publish_status(k8s, cluster, prober):
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))
    readiness.publish_region_status(cluster, True)
    readiness.publish_reaper_status(cluster, False)

    prober.update_region_status.assert_called_once_with(True)
    prober.update_reaper_status.assert_called_once_with(False)


def with_regions(cluster_resource, *domains) -> ClusterState:
    cluster_resource["spec"]["externalRegions"] = {
        "managed": [{"domain": domain} for domain in domains]
    }
    return ClusterState(cluster_resource)


def test_single_region_is_first(k8s, cluster, prober):
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))
    assert readiness.first_region_ready(cluster)
    prober.reaper_ready.assert_not_called()


def test_first_region_does_not_wait(k8s, cluster_resource, prober):
    # "example.com" sorts before "example.org".
    cluster = with_regions(cluster_resource, "example.org")
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))

    assert cluster.is_first_region
    assert readiness.first_region_ready(cluster)
    prober.reaper_ready.assert_not_called()


def test_other_regions_wait_for_the_first(k8s, cluster_resource, prober):
    cluster = with_regions(cluster_resource, "a.example.com")
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))
    first = "test-cluster-cassandra-prober-cassandra.a.example.com"

    assert cluster.all_region_hosts[0] == first
    assert not readiness.first_region_ready(cluster)
    prober.reaper_ready.assert_called_once_with(first)
    assert k8s.event_reasons() == [EventReason.REGION_INIT.value]

    prober.reaper_ready.return_value = True
    assert readiness.first_region_ready(cluster)


def test_unreachable_first_region_is_not_ready(k8s, cluster_resource, prober):
    cluster = with_regions(cluster_resource, "a.example.com")
    prober.reaper_ready.side_effect = ProberRequestError("down")
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))

    assert not readiness.first_region_ready(cluster)


def test_scaling_down_dc_is_not_ready(k8s, cluster, prober):
    k8s.add(statefulset("dc1", replicas=3, ready=2))
    k8s.add(statefulset("dc2", ready=1))
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))
    assert readiness.unready_dcs(cluster) == ["dc1"]


def test_unready_regions(k8s, cluster_resource, prober):
    cluster = with_regions(cluster_resource, "a.example.com", "b.example.com")
    a = "test-cluster-cassandra-prober-cassandra.a.example.com"
    b = "test-cluster-cassandra-prober-cassandra.b.example.com"
    prober.region_ready.side_effect = lambda host: host == a
    readiness = ClusterReadiness(k8s, prober, EventRecorder(k8s))

    assert readiness.unready_regions(cluster) == [b]

    prober.region_ready.side_effect = ProberRequestError("down")
    assert readiness.unready_regions(cluster) == [a, b]
