# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Client of the prober API.

Each region runs a prober. The operator of a region publishes the status of
its region to the local prober, and reads the status of the other regions
from their probers, exposed over an ingress.
"""

from __future__ import annotations

import logging

import requests

from cassandra_operator.config.literals import PROBER_TIMEOUT
from cassandra_operator.exceptions import ProberRequestError

logger = logging.getLogger(__name__)


class ProberClient:
    """Talks to the local prober and to the probers of the other regions."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        session: requests.Session | None = None,
        timeout: float = PROBER_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (username, password)

    def _request(self, method: str, url: str, data: str | None = None) -> requests.Response:
        try:
            response = self.session.request(method, url, data=data, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ProberRequestError(f"{method} request to {url} failed: {e}") from e
        return response

    def _get_bool(self, url: str) -> bool:
        response = self._request("GET", url)
        body = response.text.strip().lower()
        if body not in ("true", "false"):
            raise ProberRequestError(f"unexpected response from {url}, expected true or false")
        return body == "true"

    def region_ready(self, host: str) -> bool:
        """Whether the region behind the prober `host` finished its rollout.

        Raises:
            ProberRequestError
        """
        return self._get_bool(f"https://{host}/region-ready")

    def reaper_ready(self, host: str) -> bool:
        """Whether the region behind the prober `host` has its reaper running.

        Raises:
            ProberRequestError
        """
        return self._get_bool(f"https://{host}/reaper-ready")

    def update_region_status(self, ready: bool) -> None:
        """Publishes the readiness of this region.

        Raises:
            ProberRequestError
        """
        self._request("PUT", f"{self.base_url}/region-ready", str(ready).lower())

    def update_reaper_status(self, ready: bool) -> None:
        """Publishes the readiness of the reaper of this region.

        Raises:
            ProberRequestError
        """
        self._request("PUT", f"{self.base_url}/reaper-ready", str(ready).lower())
