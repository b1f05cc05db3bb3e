import base64

import factory
from lightkube.models.apps_v1 import (
    DeploymentSpec,
    DeploymentStatus,
    StatefulSetSpec,
    StatefulSetStatus,
)
from lightkube.models.core_v1 import PodTemplateSpec, ServicePort, ServiceSpec
from lightkube.models.meta_v1 import LabelSelector, ObjectMeta
from lightkube.resources.apps_v1 import Deployment, StatefulSet
from lightkube.resources.core_v1 import PersistentVolumeClaim, Secret, Service

from cassandra_operator.config import names
from cassandra_operator.config.labels import component_labels
from cassandra_operator.config.literals import Components, Labels
from cassandra_operator.state.credentials import DesiredCredential
from cassandra_operator.utils.cql_config import CqlConfiguration

NAMESPACE = "cassandra"
CLUSTER = "test-cluster"


def b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def unb64(value: str) -> str:
    return base64.b64decode(value).decode()


class ObjectMetaFactory(factory.Factory):
    class Meta:  # noqa
        model = ObjectMeta

    name = factory.Sequence(lambda n: f"object-{n}")
    namespace = NAMESPACE


class SecretFactory(factory.Factory):
    class Meta:  # noqa
        model = Secret

    metadata = factory.SubFactory(ObjectMetaFactory)
    type = "Opaque"
    data = factory.LazyFunction(dict)


class DesiredCredentialFactory(factory.Factory):
    class Meta:  # noqa
        model = DesiredCredential

    role = "admin"
    password = "p1"


class CqlConfigurationFactory(factory.Factory):
    class Meta:  # noqa
        model = CqlConfiguration

    username = "admin"
    password = "deadbeef"
    hosts = factory.LazyFunction(lambda: ["dc1.cassandra.svc.cluster.local"])
    port = 9042
    tls = False


def admin_secret(role: str = "admin", password: str = "p1", annotated: bool = True) -> Secret:
    """The operator provided admin role secret."""
    annotations = {Labels.INSTANCE.value: CLUSTER} if annotated else None
    return SecretFactory.build(
        metadata=ObjectMetaFactory.build(name="admin-role", annotations=annotations),
        data={"admin-role": b64(role), "admin-password": b64(password)},
    )


def active_secret(role: str = "cassandra", password: str = "cassandra") -> Secret:
    """An active admin secret as a previous pass would have left it."""
    return SecretFactory.build(
        metadata=ObjectMetaFactory.build(
            name=names.active_admin_secret(CLUSTER),
            labels=component_labels(CLUSTER, Components.CASSANDRA),
        ),
        immutable=True,
        data={
            "admin-role": b64(role),
            "admin-password": b64(password),
            "jmx-credentials": b64(f"username={role}\npassword={password}\n"),
        },
    )


def secret_credential(secret: Secret) -> tuple[str, str]:
    return unb64(secret.data["admin-role"]), unb64(secret.data["admin-password"])


def selector() -> LabelSelector:
    return LabelSelector(matchLabels=component_labels(CLUSTER, Components.CASSANDRA))


def statefulset(dc: str, replicas: int = 1, ready: int = 1) -> StatefulSet:
    return StatefulSet(
        metadata=ObjectMetaFactory.build(name=names.dc(CLUSTER, dc)),
        spec=StatefulSetSpec(
            selector=selector(),
            serviceName=names.dc_service(CLUSTER, dc),
            template=PodTemplateSpec(),
            replicas=replicas,
        ),
        status=StatefulSetStatus(replicas=replicas, readyReplicas=ready),
    )


def reaper_deployment(dc: str, ready: int = 1) -> Deployment:
    return Deployment(
        metadata=ObjectMetaFactory.build(name=names.reaper_deployment(CLUSTER, dc)),
        spec=DeploymentSpec(selector=selector(), template=PodTemplateSpec()),
        status=DeploymentStatus(readyReplicas=ready),
    )


def pvc(name: str = "data-test-cluster-cassandra-dc1-0") -> PersistentVolumeClaim:
    return PersistentVolumeClaim(
        metadata=ObjectMetaFactory.build(
            name=name, labels=component_labels(CLUSTER, Components.CASSANDRA)
        )
    )


def service(name: str = "test-cluster-cassandra-dc1", **spec) -> Service:
    return Service(
        metadata=ObjectMetaFactory.build(name=name),
        spec=ServiceSpec(ports=[ServicePort(name="cql", port=9042)], **spec),
    )
