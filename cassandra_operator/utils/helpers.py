#!/usr/bin/env python3
# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.

"""Some helpers functions that doesn't belong anywhere else."""

import base64


def encode_secret_data(content: dict[str, str]) -> dict[str, str]:
    """Base64 encodes plain text secret content, the way the API server stores it."""
    return {
        key: base64.b64encode(value.encode("utf-8")).decode("ascii")
        for key, value in content.items()
    }


def decode_secret_data(data: dict[str, str] | None) -> dict[str, str]:
    """Decodes the data of a Secret read from the API server."""
    return {
        key: base64.b64decode(value).decode("utf-8") for key, value in (data or {}).items()
    }
