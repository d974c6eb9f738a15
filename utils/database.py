"""
=========================================
Database facade over a driver connection.
=========================================

Database pairs a Connection with its DatabaseType and is the entry point
for application code: raw statements, explicit transactions and the
chainable table builder.

Example:
    >>> from utils.database import Database
    >>>
    >>> with Database.connect() as db:
    ...     with db.transaction():
    ...         db.table('users').add_value('name', "O'Reilly").execute()
    ...     rows = db.table('users').select(['id', 'name']).get()
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from core.config import DatabaseConfig, DatabaseType, config
from sql.chainable import ChainableQuery
from utils.connection import Connection, ResultSet
from utils.database_utils import create_connection

logger = logging.getLogger(__name__)


class Database:
    """
    Connection plus dialect.

    Attributes:
        connection: Open Connection used for every call
        db_type: Database kind, passed to statement renderers
    """

    def __init__(self, connection: Connection, db_type: DatabaseType):
        self.connection = connection
        self.db_type = db_type

    @classmethod
    def connect(cls, db_config: Optional[DatabaseConfig] = None) -> 'Database':
        """
        Open a connection for the given (or globally configured) database.

        Raises:
            ConfigurationError: If required settings are missing
            DriverNotAvailableError: If the driver cannot be used
            ConnectionFailedError: If the connection fails
        """
        db_config = db_config or config.db
        connection = create_connection(db_config, connect=True)
        logger.info(f"Connected to {db_config.db_type.value} database '{db_config.database}'")
        return cls(connection, db_config.db_type)

    def execute(self, sql: str) -> None:
        self.connection.execute(sql)

    def query(self, sql: str) -> ResultSet:
        return self.connection.query(sql)

    def begin_transaction(self) -> None:
        self.connection.begin_transaction()

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    @contextmanager
    def transaction(self) -> Iterator['Database']:
        """
        Run a block inside a transaction.

        Commits when the block completes; rolls back and re-raises when it
        raises.
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def table(self, name: str) -> ChainableQuery:
        """Start a chainable query on a table."""
        return ChainableQuery(self.connection, name, self.db_type)

    def disconnect(self) -> None:
        self.connection.disconnect()

    def __enter__(self) -> 'Database':
        if not self.connection.is_connected:
            self.connection.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
