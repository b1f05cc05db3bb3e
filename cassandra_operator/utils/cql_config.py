#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Configuration of a CQL session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dacite import from_dict

from cassandra_operator.config.literals import CQL_CONNECT_TIMEOUT, CassandraPorts
from cassandra_operator.state.cluster_state import ClusterState
from cassandra_operator.state.credentials import Credential


@dataclass(frozen=True)
class CqlConfiguration:
    """Connection settings of a CQL session.

    Each instance authenticates as a single role.
    """

    username: str
    password: str
    hosts: list[str] = field(default_factory=list)
    port: int = CassandraPorts.CQL_PORT.value
    tls: bool = False
    ca_file: str | None = None
    connect_timeout: float = CQL_CONNECT_TIMEOUT

    def __repr__(self) -> str:
        """Never print the password."""
        return f"CqlConfiguration(username={self.username!r}, hosts={self.hosts!r})"

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> CqlConfiguration:
        """Builds the configuration from a plain dict."""
        return from_dict(cls, data)

    @classmethod
    def for_cluster(cls, cluster: ClusterState, credential: Credential) -> CqlConfiguration:
        """The configuration to log into the local DCs of `cluster` as `credential`."""
        return cls.from_mapping(
            {
                "username": credential.role,
                "password": credential.password,
                "hosts": cluster.cql_hosts(),
                "tls": cluster.spec.encryption.client.enabled,
            }
        )
