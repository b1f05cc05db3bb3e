# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Definition of the admin credentials and their secret representations."""

from __future__ import annotations

import binascii

from pydantic import BaseModel, ConfigDict

from cassandra_operator.config.literals import (
    DEFAULT_PASSWORD,
    DEFAULT_ROLE,
    CassandraPorts,
    SecretKeys,
)
from cassandra_operator.exceptions import AdminSecretInvalidError
from cassandra_operator.utils.helpers import decode_secret_data


class Credential(BaseModel):
    """A role and its password."""

    model_config = ConfigDict(frozen=True)

    role: str
    password: str

    def __repr__(self) -> str:
        """Never print the password."""
        return f"{type(self).__name__}(role={self.role!r})"

    __str__ = __repr__

    @property
    def is_default(self) -> bool:
        """Whether this is the role every fresh cassandra node boots with."""
        return self.role == DEFAULT_ROLE and self.password == DEFAULT_PASSWORD

    def same_as(self, other: Credential) -> bool:
        """Same role and password, whatever the credential flavour."""
        return self.role == other.role and self.password == other.password

    @property
    def jmx_credentials(self) -> str:
        """The JMX credentials blob read by the prober and the jolokia sidecar."""
        return f"username={self.role}\npassword={self.password}\n"


class DesiredCredential(Credential):
    """The credential declared by the operator in the admin role secret."""

    @classmethod
    def from_secret_data(cls, name: str, data: dict[str, str] | None) -> DesiredCredential:
        """Reads the base64 encoded data of the admin role secret.

        Raises:
            AdminSecretInvalidError
        """
        try:
            decoded = decode_secret_data(data)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise AdminSecretInvalidError(f"{name} holds malformed data: {e}") from e
        role = decoded.get(SecretKeys.ADMIN_ROLE.value, "").strip()
        password = decoded.get(SecretKeys.ADMIN_PASSWORD.value, "").strip()
        if not role:
            raise AdminSecretInvalidError(f"{name} has no {SecretKeys.ADMIN_ROLE.value} key")
        if not password:
            raise AdminSecretInvalidError(f"{name} has no {SecretKeys.ADMIN_PASSWORD.value} key")
        return cls(role=role, password=password)


class ActiveCredential(Credential):
    """The credential currently believed to work against the live cluster."""

    @classmethod
    def from_secret_data(cls, data: dict[str, str] | None) -> ActiveCredential:
        """Reads the base64 encoded data of the active admin secret."""
        decoded = decode_secret_data(data)
        return cls(
            role=decoded.get(SecretKeys.ADMIN_ROLE.value, ""),
            password=decoded.get(SecretKeys.ADMIN_PASSWORD.value, ""),
        )

    @classmethod
    def from_credential(cls, credential: Credential) -> ActiveCredential:
        """Promotes a credential to the active one."""
        return cls(role=credential.role, password=credential.password)

    def secret_content(self, jmx_local_files: bool) -> dict[str, str]:
        """Plain text content of the active admin secret."""
        content = {
            SecretKeys.ADMIN_ROLE.value: self.role,
            SecretKeys.ADMIN_PASSWORD.value: self.password,
        }
        if jmx_local_files:
            content[SecretKeys.JMX_CREDENTIALS.value] = self.jmx_credentials
        return content

    def auth_config_content(self, jmx_local_files: bool) -> dict[str, str]:
        """Plain text content of the admin auth config secret."""
        content = {
            SecretKeys.ADMIN_ROLE.value: self.role,
            SecretKeys.ADMIN_PASSWORD.value: self.password,
            SecretKeys.CQLSHRC.value: (
                "\n[authentication]\n"
                f"username = {self.role}\n"
                f"password = {self.password}\n"
                "[connection]\n"
                "hostname = 127.0.0.1\n"
                f"port = {CassandraPorts.CQL_PORT.value}\n"
            ),
            SecretKeys.ADMIN_USERNAME_FILE.value: f"{self.role}\n",
            SecretKeys.ADMIN_PASSWORD_FILE.value: f"{self.password}\n",
        }
        if jmx_local_files:
            content[SecretKeys.JMX_REMOTE_PASSWORD.value] = f"{self.role} {self.password}\n"
            # jmxremote.access is read once at start, so the default role keeps its access.
            access = (
                "{role} readwrite \\\n"
                "create javax.management.monitor.*, javax.management.timer.* \\\n"
                "unregister\n"
            )
            roles = dict.fromkeys([self.role, DEFAULT_ROLE])
            content[SecretKeys.JMX_REMOTE_ACCESS.value] = "".join(
                access.format(role=role) for role in roles
            )
        return content


DEFAULT_CREDENTIAL = ActiveCredential(role=DEFAULT_ROLE, password=DEFAULT_PASSWORD)


class CredentialRecord(BaseModel):
    """The active credential next to the desired one.

    `active` always denotes a credential known to authenticate against the live
    cluster. `desired` is the operator intent and may lag while rotating.
    """

    model_config = ConfigDict(frozen=True)

    active: ActiveCredential
    desired: DesiredCredential

    @property
    def in_sync(self) -> bool:
        """Whether no rotation is needed."""
        return self.active.same_as(self.desired)

    @property
    def default_bootstrap(self) -> bool:
        """Both sides are the default credential: the cluster is still bootstrapping."""
        return self.active.is_default and self.desired.is_default

    @property
    def role_changes(self) -> bool:
        """Whether the rotation switches to another role rather than another password."""
        return self.active.role != self.desired.role
