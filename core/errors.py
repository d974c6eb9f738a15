"""
====================================
Exception hierarchy for the toolkit.
====================================

All errors raised by the statement builders, the connection layer and the
migration engine derive from DigError so callers can catch the whole family
with a single except clause.

Hierarchy:
    DigError
    ├── ConfigurationError
    ├── QueryBuildError
    │   └── QueryUsageError
    ├── DatabaseError
    │   ├── ConnectionFailedError
    │   ├── DriverNotAvailableError
    │   ├── QueryExecutionError
    │   └── TransactionError
    └── MigrationError
        ├── MigrationLoadError
        └── MigrationExecutionError
"""

from typing import Any, Dict, Optional


class DigError(Exception):
    """Base exception for all toolkit errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(DigError):
    """Raised when configuration is missing or invalid."""
    pass


class QueryBuildError(DigError):
    """Raised when a statement cannot be assembled from its fragments."""
    pass


class QueryUsageError(QueryBuildError):
    """Raised when a terminal operation does not match the statement kind."""
    pass


class DatabaseError(DigError):
    """Raised when the database connection rejects an operation."""

    def __init__(
        self,
        message: str,
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.database_type = database_type


class ConnectionFailedError(DatabaseError):
    """Raised when a connection cannot be opened or is used while closed."""
    pass


class DriverNotAvailableError(DatabaseError):
    """Raised when no usable driver is registered for a database type."""
    pass


class QueryExecutionError(DatabaseError):
    """Raised when execute() or query() is rejected by the database."""

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        database_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, database_type, details)
        self.sql = sql


class TransactionError(DatabaseError):
    """Raised when begin, commit or rollback is rejected."""
    pass


class MigrationError(DigError):
    """Base exception for migration engine failures."""
    pass


class MigrationLoadError(MigrationError):
    """Raised when migration files cannot be read or parsed."""
    pass


class MigrationExecutionError(MigrationError):
    """Raised when a forward or backward script fails to apply."""

    def __init__(
        self,
        message: str,
        migration_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)
        self.migration_id = migration_id
