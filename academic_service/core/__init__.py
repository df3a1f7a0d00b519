# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the academic service.

This package contains configuration and the shared vocabulary of the service:
- config: Application configuration and settings
- constants: Response codes, roles, relationships and group types
- errors: The service error taxonomy
- roles: Role priority and role-set rules
"""
