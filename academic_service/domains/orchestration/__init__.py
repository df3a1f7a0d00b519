# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Compensating transactions spanning the local store and remote services."""

from academic_service.domains.orchestration.transaction import CompensatingTransaction, Step

__all__ = ["CompensatingTransaction", "Step"]
