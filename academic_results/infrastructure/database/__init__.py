# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure.

This package provides:
- Async engine and session management (connection)
- ORM models for results and the reference tables they read
- SQLAlchemy implementations of the result repository and directory
"""

from academic_results.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    create_tables,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
)
from academic_results.infrastructure.database.directory import SqlAcademicDirectory
from academic_results.infrastructure.database.repository import SqlResultRepository

__all__ = [
    "DatabaseError",
    "close_database",
    "create_tables",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "SqlAcademicDirectory",
    "SqlResultRepository",
]
