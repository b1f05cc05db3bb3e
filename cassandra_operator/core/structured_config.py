#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Structured models of the CassandraCluster custom resource."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cassandra_operator.config.literals import (
    DEFAULT_DC_REPLICAS,
    DEFAULT_HOST_PORTS,
    REAPER_REPLICAS,
    InternodeEncryption,
    JmxAuthentication,
)


class BaseSpecModel(BaseModel):
    """Class to be used for defining the parts of the custom resource spec."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="allow",
    )

    def __getitem__(self, x):
        """Return the item using the notation instance[key]."""
        return getattr(self, x.replace("-", "_"))


class DC(BaseSpecModel):
    """A datacenter of the local region."""

    name: str
    replicas: int = DEFAULT_DC_REPLICAS


class ManagedRegion(BaseSpecModel):
    """A region run by another instance of this operator, reachable through its prober."""

    domain: str
    namespace: str = ""


class UnmanagedDC(BaseSpecModel):
    """A datacenter of a region this operator knows nothing about but its name."""

    name: str
    rf: int = 3


class UnmanagedRegion(BaseSpecModel):
    """A pre-existing region, assumed ready and never probed."""

    seeds: list[str] = Field(default_factory=list)
    dcs: list[UnmanagedDC] = Field(default_factory=list)


class ExternalRegions(BaseSpecModel):
    """Regions of the same logical cluster deployed outside of this namespace."""

    managed: list[ManagedRegion] = Field(default_factory=list)
    unmanaged: list[UnmanagedRegion] = Field(default_factory=list)

    def __bool__(self) -> bool:
        """Whether any external region is declared."""
        return bool(self.managed or self.unmanaged)


class Persistence(BaseSpecModel):
    """Persistent storage of the cassandra nodes."""

    enabled: bool = False


class Cassandra(BaseSpecModel):
    """Cassandra node settings."""

    persistence: Persistence = Field(default_factory=Persistence)


class Jmx(BaseSpecModel):
    """JMX settings."""

    authentication: JmxAuthentication = JmxAuthentication.LOCAL_FILES


class ServerEncryption(BaseSpecModel):
    """Node to node encryption."""

    internode_encryption: InternodeEncryption = InternodeEncryption.NONE


class ClientEncryption(BaseSpecModel):
    """Client to node encryption."""

    enabled: bool = False


class Encryption(BaseSpecModel):
    """Encryption settings."""

    server: ServerEncryption = Field(default_factory=ServerEncryption)
    client: ClientEncryption = Field(default_factory=ClientEncryption)


class HostPort(BaseSpecModel):
    """Exposure of the cassandra ports on the host network."""

    enabled: bool = False
    ports: list[str] = Field(default_factory=lambda: list(DEFAULT_HOST_PORTS))


class Ingress(BaseSpecModel):
    """Ingress exposing the prober to the other regions."""

    domain: str = ""


class Prober(BaseSpecModel):
    """Prober settings."""

    ingress: Ingress = Field(default_factory=Ingress)


class Reaper(BaseSpecModel):
    """Reaper settings. `dcs` defaults to the cassandra DCs."""

    dcs: list[DC] = Field(default_factory=list)
    replicas: int = REAPER_REPLICAS


class CassandraClusterSpec(BaseSpecModel):
    """The structured spec of a CassandraCluster."""

    dcs: list[DC] = Field(min_length=1)
    admin_role_secret_name: str
    external_regions: ExternalRegions = Field(default_factory=ExternalRegions)
    cassandra: Cassandra = Field(default_factory=Cassandra)
    jmx: Jmx = Field(default_factory=Jmx)
    encryption: Encryption = Field(default_factory=Encryption)
    host_port: HostPort = Field(default_factory=HostPort)
    prober: Prober = Field(default_factory=Prober)
    reaper: Reaper | None = None

    @property
    def reaper_dcs(self) -> list[DC]:
        """DCs running a reaper, in rollout order."""
        if self.reaper and self.reaper.dcs:
            return self.reaper.dcs
        return self.dcs
