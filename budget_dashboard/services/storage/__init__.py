"""
Storage Services Package

Provides the abstract ledger interface and its SQLAlchemy implementation
(Supabase Postgres in production, SQLite in tests).
"""

from budget_dashboard.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    StorageNotConfiguredError,
)
from budget_dashboard.services.storage.sql_ledger import (
    SqlLedgerStorage,
    create_ledger_engine,
    metadata,
)

__all__ = [
    # Interfaces
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "StorageNotConfiguredError",
    # SQL implementation
    "SqlLedgerStorage",
    "create_ledger_engine",
    "metadata",
]
