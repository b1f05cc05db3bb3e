#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""All general exceptions."""


class CassandraOperatorError(Exception):
    """Base class of the errors raised while reconciling a cluster."""


class ConfigurationError(CassandraOperatorError):
    """Raised when the operator input cannot be used, retrying won't help."""


class AdminSecretNotFoundError(ConfigurationError):
    """Raised when the operator supplied admin role secret does not exist."""

    def __init__(self, name: str, namespace: str):
        super().__init__(f"admin role secret {namespace}/{name} not found")
        self.name = name
        self.namespace = namespace


class AdminSecretInvalidError(ConfigurationError):
    """Raised when the admin role secret misses the role or password key."""


class InvalidClusterSpecError(ConfigurationError):
    """Raised when the cluster custom resource does not validate."""


class ObjectStoreError(CassandraOperatorError):
    """Raised when a call to the Kubernetes API fails for any reason but not-found."""

    def __init__(self, operation: str, kind: str, name: str, code: int | None, message: str):
        super().__init__(message)
        self.operation = operation
        self.kind = kind
        self.name = name
        self.code = code
        self.message = message

    @property
    def is_conflict(self) -> bool:
        """Whether another writer updated the object since it was read."""
        return self.code == 409

    def __str__(self) -> str:
        """Repr of error."""
        return f"failed to {self.operation} {self.kind} {self.name} ({self.code}): {self.message}"


class CqlLoginError(CassandraOperatorError):
    """Raised when a CQL session cannot be opened with the given credential."""


class CqlQueryError(CassandraOperatorError):
    """Raised when a CQL statement fails on an open session."""


class AdminRoleUpdateError(CassandraOperatorError):
    """Raised when the admin role cannot be created or its password changed."""


class AdminRoleVerificationError(CassandraOperatorError):
    """Raised when the rotated credential never becomes usable."""


class ProberRequestError(CassandraOperatorError):
    """Raised when a request to the local prober fails."""
