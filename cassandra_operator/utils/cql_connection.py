# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Definition of CQL connections."""

from __future__ import annotations

import logging
import ssl

from cassandra import DriverException
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, NoHostAvailable, Session

from cassandra_operator.exceptions import CqlLoginError, CqlQueryError
from cassandra_operator.utils.cql_config import CqlConfiguration

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quotes a role name so it is used verbatim (case and special characters kept)."""
    return '"' + name.replace('"', '""') + '"'


class CqlConnection:
    """A CQL session authenticated as a single role.

    The session is opened on enter and closed on exit. Failing to log in is an
    expected outcome while rotating the admin credential, so it is reported as
    a CqlLoginError the caller is meant to handle:

    with CqlConnection(config) as cql:
        cql.update_role_password(...)
    """

    def __init__(self, config: CqlConfiguration):
        self.config = config
        self.cluster: Cluster | None = None
        self.session: Session | None = None

    def __enter__(self) -> CqlConnection:
        """Logs in and returns the open connection."""
        self.open()
        return self

    def __exit__(self, *args, **kwargs):
        """Closes the session."""
        self.close()

    def _ssl_context(self) -> ssl.SSLContext | None:
        if not self.config.tls:
            return None
        context = ssl.create_default_context(cafile=self.config.ca_file)
        if not self.config.ca_file:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def open(self) -> None:
        """Opens the session.

        Raises:
            CqlLoginError
        """
        self.cluster = Cluster(
            contact_points=self.config.hosts,
            port=self.config.port,
            auth_provider=PlainTextAuthProvider(
                username=self.config.username, password=self.config.password
            ),
            ssl_context=self._ssl_context(),
            connect_timeout=self.config.connect_timeout,
        )
        try:
            self.session = self.cluster.connect()
        except (NoHostAvailable, DriverException) as e:
            self.close()
            raise CqlLoginError(f"cannot log in as {self.config.username}: {e}") from e

    def close(self) -> None:
        """Closes the session and the driver connection pools."""
        if self.cluster is not None:
            self.cluster.shutdown()
        self.cluster = None
        self.session = None

    def _execute(self, query: str, params: tuple | None = None) -> None:
        if self.session is None:
            raise CqlQueryError("session is not open")
        try:
            self.session.execute(query, params)
        except (NoHostAvailable, DriverException) as e:
            raise CqlQueryError(str(e)) from e

    def create_role(
        self, name: str, password: str, super_user: bool = True, login: bool = True
    ) -> None:
        """Creates a role, doing nothing if it already exists.

        Raises:
            CqlQueryError
        """
        logger.debug("Creating role %s", name)
        self._execute(
            f"CREATE ROLE IF NOT EXISTS {quote_identifier(name)} "
            f"WITH SUPERUSER = {str(super_user).lower()} "
            f"AND LOGIN = {str(login).lower()} AND PASSWORD = %s",
            (password,),
        )

    def update_role_password(self, name: str, password: str) -> None:
        """Changes the password of an existing role.

        Raises:
            CqlQueryError
        """
        logger.debug("Updating password of role %s", name)
        self._execute(f"ALTER ROLE {quote_identifier(name)} WITH PASSWORD = %s", (password,))
