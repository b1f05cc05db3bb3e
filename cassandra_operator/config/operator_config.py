#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Process level configuration of the operator, read from the environment."""

import os
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cassandra_operator.config.literals import CLUSTER_NOT_READY_DELAY


class LogFormat(str, Enum):
    """Accepted log formats."""

    JSON = "json"
    CONSOLE = "console"


class OperatorConfig(BaseModel):
    """The structured configuration of the operator process."""

    model_config = ConfigDict(
        use_enum_values=True, extra="ignore", frozen=True, validate_default=True
    )

    namespace: str = Field(default="default", alias="NAMESPACE")
    log_level: str = Field(default="info", alias="LOGLEVEL")
    log_format: LogFormat = Field(default=LogFormat.JSON, alias="LOGFORMAT")
    retry_delay: float = Field(default=CLUSTER_NOT_READY_DELAY, alias="RETRY_DELAY")
    prober_username: str = Field(default="", alias="PROBER_USERNAME")
    prober_password: str = Field(default="", alias="PROBER_PASSWORD")

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        """Accepts the zap style level names, case insensitive."""
        value = value.upper()
        if value == "WARN":
            value = "WARNING"
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"{value} is not a log level")
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OperatorConfig":
        """Builds the configuration from the process environment."""
        return cls.model_validate(dict(os.environ if environ is None else environ))
