# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

import pytest
from cassandra import InvalidRequest
from cassandra.cluster import NoHostAvailable

from cassandra_operator.exceptions import CqlLoginError, CqlQueryError
from cassandra_operator.utils.cql_connection import CqlConnection, quote_identifier

from .helpers import CqlConfigurationFactory


@pytest.fixture
def cluster_cls(mocker):
    return mocker.patch("cassandra_operator.utils.cql_connection.Cluster")


def test_open_and_close(cluster_cls):
    config = CqlConfigurationFactory.build()
    with CqlConnection(config) as cql:
        assert cql.session is cluster_cls.return_value.connect.return_value

    kwargs = cluster_cls.call_args.kwargs
    assert kwargs["contact_points"] == ["dc1.cassandra.svc.cluster.local"]
    assert kwargs["port"] == 9042
    assert kwargs["ssl_context"] is None
    assert kwargs["auth_provider"].username == "admin"
    cluster_cls.return_value.shutdown.assert_called_once()


def test_tls_context(cluster_cls):
    with CqlConnection(CqlConfigurationFactory.build(tls=True)):
        pass
    assert cluster_cls.call_args.kwargs["ssl_context"] is not None


def test_login_failure(cluster_cls):
    cluster_cls.return_value.connect.side_effect = NoHostAvailable(
        "Unable to connect to any servers", {"10.0.0.1": "AuthenticationFailed"}
    )
    with pytest.raises(CqlLoginError):
        with CqlConnection(CqlConfigurationFactory.build()):
            pass
    cluster_cls.return_value.shutdown.assert_called_once()


def test_create_role(cluster_cls):
    with CqlConnection(CqlConfigurationFactory.build()) as cql:
        cql.create_role("Admin", "p'1")

    session = cluster_cls.return_value.connect.return_value
    session.execute.assert_called_once_with(
        'CREATE ROLE IF NOT EXISTS "Admin" '
        "WITH SUPERUSER = true AND LOGIN = true AND PASSWORD = %s",
        ("p'1",),
    )


def test_update_role_password(cluster_cls):
    with CqlConnection(CqlConfigurationFactory.build()) as cql:
        cql.update_role_password("admin", "p1")

    session = cluster_cls.return_value.connect.return_value
    session.execute.assert_called_once_with('ALTER ROLE "admin" WITH PASSWORD = %s', ("p1",))


def test_query_failure(cluster_cls):
    session = cluster_cls.return_value.connect.return_value
    session.execute.side_effect = InvalidRequest("role doesn't exist")
    with CqlConnection(CqlConfigurationFactory.build()) as cql:
        with pytest.raises(CqlQueryError):
            cql.update_role_password("admin", "p1")


def test_query_on_closed_session():
    with pytest.raises(CqlQueryError):
        CqlConnection(CqlConfigurationFactory.build()).update_role_password("admin", "p1")


def test_quote_identifier():
    assert quote_identifier("admin") == '"admin"'
    assert quote_identifier('we"ird') == '"we""ird"'
