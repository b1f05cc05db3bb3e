# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Root logger setup for the operator process."""

import json
import logging

from cassandra_operator.config.operator_config import LogFormat, OperatorConfig

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        """Render the record as a JSON line."""
        entry = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(config: OperatorConfig) -> None:
    """Installs a single stream handler on the root logger."""
    handler = logging.StreamHandler()
    if config.log_format == LogFormat.JSON.value:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(config.log_level)
