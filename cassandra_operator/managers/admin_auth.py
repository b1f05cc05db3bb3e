#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""The admin credential lifecycle manager.

The active credential lives in an immutable secret. It goes through:
 * bootstrap: the secret is missing, it is seeded with the default or the
   operator provided credential without contacting the database.
 * stable: the active credential matches the operator provided one.
 * rotation: they differ. The desired credential is made valid in the database
   with the active one, verified, and only then committed to a new secret.

The active credential always authenticates against the cluster, so at any
point either the active or the desired credential can open a session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from lightkube.models.meta_v1 import ObjectMeta
from lightkube.resources.core_v1 import Secret
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from cassandra_operator.config.labels import component_labels
from cassandra_operator.config.literals import (
    INITIAL_RETRY_DELAY,
    RETRY_ATTEMPTS,
    Components,
    EventReason,
    Labels,
)
from cassandra_operator.core.managed_object import SecretObject
from cassandra_operator.core.outcome import ReconcileResult
from cassandra_operator.exceptions import (
    AdminRoleUpdateError,
    AdminRoleVerificationError,
    AdminSecretInvalidError,
    AdminSecretNotFoundError,
    CqlLoginError,
    CqlQueryError,
)
from cassandra_operator.managers.bootstrap import RegionBootstrapDecider
from cassandra_operator.managers.convergence import ConvergenceEngine
from cassandra_operator.managers.events import EventRecorder
from cassandra_operator.managers.k8s import K8sManager
from cassandra_operator.state.cluster_state import ClusterState
from cassandra_operator.state.credentials import (
    DEFAULT_CREDENTIAL,
    ActiveCredential,
    Credential,
    CredentialRecord,
    DesiredCredential,
)
from cassandra_operator.utils.cql_config import CqlConfiguration
from cassandra_operator.utils.cql_connection import CqlConnection
from cassandra_operator.utils.helpers import encode_secret_data

logger = logging.getLogger(__name__)


class AdminAuthManager:
    """Owns the active admin credential of a cluster."""

    def __init__(
        self,
        k8s: K8sManager,
        engine: ConvergenceEngine,
        decider: RegionBootstrapDecider,
        events: EventRecorder,
        connection_factory: Callable[[CqlConfiguration], CqlConnection] = CqlConnection,
    ):
        self.k8s = k8s
        self.engine = engine
        self.decider = decider
        self.events = events
        self.connection_factory = connection_factory

    def reconcile(self, cluster: ClusterState, cluster_ready: bool) -> ActiveCredential:
        """Brings the active credential one step closer to the desired one.

        Returns the committed active credential, the one workloads must use.

        Raises:
            AdminSecretNotFoundError, AdminSecretInvalidError, ObjectStoreError,
            AdminRoleUpdateError, AdminRoleVerificationError
        """
        desired = self.get_desired_credential(cluster)

        actual = self.k8s.get(Secret, cluster.active_admin_secret_name, cluster.namespace)
        if actual is None:
            logger.info(
                "Secret %s doesn't exist, assuming it's the first deployment of %r",
                cluster.active_admin_secret_name,
                cluster,
            )
            active = self.bootstrap(cluster, desired)
        else:
            record = CredentialRecord(
                active=ActiveCredential.from_secret_data(actual.data), desired=desired
            )
            active = self.rotate_if_needed(cluster, record, cluster_ready)

        self.reconcile_auth_config(cluster, active)
        return active

    def get_desired_credential(self, cluster: ClusterState) -> DesiredCredential:
        """Reads the operator provided admin role secret.

        Raises:
            AdminSecretNotFoundError, AdminSecretInvalidError, ObjectStoreError
        """
        name = cluster.admin_secret_name
        secret = self.k8s.get(Secret, name, cluster.namespace)
        if secret is None:
            error = AdminSecretNotFoundError(name, cluster.namespace)
            self.events.warning(cluster, EventReason.ADMIN_ROLE_SECRET_NOT_FOUND, str(error))
            raise error

        try:
            desired = DesiredCredential.from_secret_data(name, secret.data)
        except AdminSecretInvalidError as e:
            self.events.warning(cluster, EventReason.ADMIN_ROLE_SECRET_INVALID, str(e))
            raise

        self._annotate_admin_secret(cluster, secret)
        return desired

    def _annotate_admin_secret(self, cluster: ClusterState, secret: Secret) -> None:
        """Marks the admin role secret so its changes can be routed to the cluster."""
        annotations = secret.metadata.annotations or {}  # type: ignore[union-attr]
        if annotations.get(Labels.INSTANCE.value) == cluster.name:
            return
        secret.metadata.annotations = {  # type: ignore[union-attr]
            **annotations,
            Labels.INSTANCE.value: cluster.name,
        }
        self.k8s.replace(secret)

    # Bootstrap
    def bootstrap(self, cluster: ClusterState, desired: DesiredCredential) -> ActiveCredential:
        """Seeds the active credential. The database is not contacted.

        Raises:
            ObjectStoreError
        """
        decision = self.decider.decide(cluster)
        if decision.use_provided_credentials:
            active = ActiveCredential.from_credential(desired)
        else:
            active = DEFAULT_CREDENTIAL
        logger.info(
            "Bootstrapping %r with role %s: %s", cluster, active.role, decision.reason
        )
        self.commit(cluster, active)
        return active

    # Rotation
    def rotate_if_needed(
        self, cluster: ClusterState, record: CredentialRecord, cluster_ready: bool
    ) -> ActiveCredential:
        """Rotates the active credential when it lags the desired one.

        Raises:
            ObjectStoreError, AdminRoleUpdateError, AdminRoleVerificationError
        """
        if record.default_bootstrap:
            logger.debug("%r still uses the default credential, nothing to rotate", cluster)
            self.commit(cluster, record.active)
            return record.active

        if record.in_sync:
            logger.debug("No updates in %s", cluster.admin_secret_name)
            self.commit(cluster, record.active)
            return record.active

        if record.active.is_default and not cluster_ready:
            logger.info(
                "%r is bootstrapping with the default credential, rotation waits for all DCs",
                cluster,
            )
            self.commit(cluster, record.active)
            return record.active

        return self.rotate(cluster, record)

    def rotate(self, cluster: ClusterState, record: CredentialRecord) -> ActiveCredential:
        """Makes the desired credential valid, verifies it and commits it.

        Raises:
            ObjectStoreError, AdminRoleUpdateError, AdminRoleVerificationError
        """
        active, desired = record.active, record.desired
        logger.info("Rotating admin credential of %r from %s to %s", cluster, active, desired)

        if self.can_login(cluster, desired):
            logger.info("The desired credential already works, another region rotated it")
        else:
            self.update_role(cluster, record)

        self.verify(cluster, desired)
        logger.info("Logged in with the desired credential, updating the active admin secret")

        new_active = ActiveCredential.from_credential(desired)
        self.commit(cluster, new_active)

        if record.role_changes:
            self.events.normal(
                cluster,
                EventReason.ADMIN_ROLE_CREATED,
                f"admin role {desired.role} is created, "
                f"role {active.role} must be removed manually",
            )
        else:
            self.events.normal(
                cluster, EventReason.ADMIN_ROLE_CHANGED, f"password of role {desired.role} changed"
            )
        return new_active

    def can_login(self, cluster: ClusterState, credential: Credential) -> bool:
        """Whether a session can be opened as `credential`."""
        try:
            with self.connection_factory(CqlConfiguration.for_cluster(cluster, credential)):
                return True
        except CqlLoginError as e:
            logger.debug("Cannot log in as %s: %s", credential.role, e)
            return False

    def update_role(self, cluster: ClusterState, record: CredentialRecord) -> None:
        """Creates the desired role if needed and sets its password, logged in as the active one.

        The previous role is never dropped.

        Raises:
            AdminRoleUpdateError
        """
        active, desired = record.active, record.desired
        try:
            with self.connection_factory(CqlConfiguration.for_cluster(cluster, active)) as cql:
                if record.role_changes:
                    logger.info("Creating role %s", desired.role)
                    cql.create_role(desired.role, desired.password, super_user=True, login=True)
                # CREATE ROLE IF NOT EXISTS keeps the password of a left over role.
                logger.info("Updating password for %s", desired.role)
                cql.update_role_password(desired.role, desired.password)
        except CqlLoginError as e:
            message = (
                f"cannot log in with either the active ({active.role}) "
                f"or the desired ({desired.role}) credential"
            )
            self.events.warning(cluster, EventReason.ADMIN_ROLE_UPDATE_FAILED, message)
            raise AdminRoleUpdateError(message) from e
        except CqlQueryError as e:
            message = f"failed to update role {desired.role}: {e}"
            self.events.warning(cluster, EventReason.ADMIN_ROLE_UPDATE_FAILED, message)
            raise AdminRoleUpdateError(message) from e

    def verify(self, cluster: ClusterState, credential: Credential) -> None:
        """Logs in as `credential`, giving the cluster time to propagate the change.

        Raises:
            AdminRoleVerificationError
        """
        config = CqlConfiguration.for_cluster(cluster, credential)
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(RETRY_ATTEMPTS),
                wait=wait_incrementing(start=INITIAL_RETRY_DELAY, increment=INITIAL_RETRY_DELAY),
                retry=retry_if_exception_type(CqlLoginError),
                before_sleep=before_sleep_log(logger, logging.INFO),
            ):
                with attempt:
                    with self.connection_factory(config):
                        pass
        except RetryError as e:
            message = (
                f"cannot log in as {credential.role}. Either the role update failed or the "
                "cluster didn't propagate it in a timely manner"
            )
            self.events.warning(cluster, EventReason.ADMIN_ROLE_UPDATE_FAILED, message)
            raise AdminRoleVerificationError(message) from e

    # Secrets
    def commit(self, cluster: ClusterState, active: ActiveCredential) -> ReconcileResult:
        """Writes the active credential secret, replacing it when its content changes.

        The secret is owned by the cluster only when the data does not outlive it:
        a persistent cluster re-created later must find the credential of its data.

        Raises:
            ObjectStoreError
        """
        secret = Secret(
            metadata=ObjectMeta(
                name=cluster.active_admin_secret_name,
                namespace=cluster.namespace,
                labels=component_labels(cluster.name, Components.CASSANDRA),
            ),
            type="Opaque",
            immutable=True,
            data=encode_secret_data(active.secret_content(cluster.jmx_local_files)),
        )
        owner = None if cluster.persistent else cluster.owner_reference
        return self.engine.reconcile(SecretObject(secret, owner))

    def reconcile_auth_config(
        self, cluster: ClusterState, active: ActiveCredential
    ) -> ReconcileResult:
        """Writes the config files derived from the active credential.

        Raises:
            ObjectStoreError
        """
        secret = Secret(
            metadata=ObjectMeta(
                name=cluster.admin_auth_config_secret_name,
                namespace=cluster.namespace,
                labels=component_labels(cluster.name, Components.CASSANDRA),
            ),
            type="Opaque",
            data=encode_secret_data(active.auth_config_content(cluster.jmx_local_files)),
        )
        return self.engine.reconcile(SecretObject(secret, cluster.owner_reference))

    def warn_insecure_setup(self, cluster: ClusterState) -> None:
        """Emits warnings for configurations exposing unencrypted traffic."""
        if cluster.has_external_regions and cluster.internode_encryption_disabled:
            self.events.warning(
                cluster,
                EventReason.INSECURE_SETUP,
                "internode encryption is disabled while traffic crosses regions, "
                "set encryption.server.internodeEncryption to enable it",
            )
        if cluster.cql_exposed_unencrypted:
            self.events.warning(
                cluster,
                EventReason.INSECURE_SETUP,
                "the CQL port is exposed on the host network without client encryption",
            )
