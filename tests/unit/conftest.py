from copy import deepcopy
from pathlib import Path

import pytest
import yaml

from cassandra_operator.config.operator_config import OperatorConfig
from cassandra_operator.managers.admin_auth import AdminAuthManager
from cassandra_operator.managers.bootstrap import RegionBootstrapDecider
from cassandra_operator.managers.convergence import ConvergenceEngine
from cassandra_operator.managers.events import EventRecorder
from cassandra_operator.state.cluster_state import ClusterState

from .fakes import FakeCassandra, FakeK8s
from .helpers import admin_secret

CLUSTER_RESOURCE = yaml.safe_load(
    (Path(__file__).parent / "data" / "cassandra_cluster.yaml").read_text()
)


@pytest.fixture(autouse=True)
def tenacity_wait(mocker):
    mocker.patch("tenacity.nap.time")


@pytest.fixture
def cluster_resource() -> dict:
    return deepcopy(CLUSTER_RESOURCE)


@pytest.fixture
def cluster(cluster_resource) -> ClusterState:
    return ClusterState(cluster_resource)


@pytest.fixture
def journal() -> list:
    return []


@pytest.fixture
def k8s(journal) -> FakeK8s:
    return FakeK8s(journal=journal)


@pytest.fixture
def cassandra(journal) -> FakeCassandra:
    return FakeCassandra(journal=journal)


@pytest.fixture
def prober(mocker):
    prober = mocker.MagicMock()
    prober.region_ready.return_value = False
    prober.reaper_ready.return_value = False
    return prober


@pytest.fixture
def admin_auth(k8s, cassandra, prober) -> AdminAuthManager:
    k8s.add(admin_secret())
    return AdminAuthManager(
        k8s,
        ConvergenceEngine(k8s),
        RegionBootstrapDecider(k8s, prober),
        EventRecorder(k8s),
        cassandra.connection_factory,
    )


@pytest.fixture
def operator_config() -> OperatorConfig:
    return OperatorConfig.from_env(
        {"NAMESPACE": "cassandra", "RETRY_DELAY": "10", "PROBER_USERNAME": "prober"}
    )
