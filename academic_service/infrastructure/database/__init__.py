# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database layer: async engine, sessions and ORM models."""

from academic_service.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)

__all__ = [
    "DatabaseError",
    "init_database",
    "close_database",
    "get_sessionmaker",
    "get_session",
    "check_database_connection",
]
