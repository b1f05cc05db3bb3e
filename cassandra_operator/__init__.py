# Copyright 2024 Canonical Ltd.
# See LICENSE file for licensing details.
"""Reconciliation library for multi-region Cassandra clusters on Kubernetes."""
