# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Results returned by the reconciliation components.

`ReconcileResult` is what the convergence engine did to one object.
`Outcome` is what a component (or a whole pass) tells the invoking framework:
nothing left to do, call me again later, or give up with a reason.
"""

from dataclasses import dataclass
from enum import Enum


class ReconcileResult(str, Enum):
    """What happened to a single managed object."""

    UNCHANGED = "unchanged"
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class Done:
    """The pass converged."""


@dataclass(frozen=True)
class RetryAfter:
    """The pass is waiting on an external condition, re-invoke after `delay` seconds."""

    delay: float
    reason: str = ""


@dataclass(frozen=True)
class Failed:
    """The pass failed. `retryable` is False when retrying cannot fix the input."""

    reason: str
    retryable: bool = True


Outcome = Done | RetryAfter | Failed
