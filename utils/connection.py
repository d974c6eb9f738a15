"""
=========================================
Database connection contract and results.
=========================================

Defines the minimal capability set the statement builders and the migration
engine consume from a database:

    execute(sql)          run a statement, no result
    query(sql)            run a statement, return a ResultSet
    begin_transaction()   open an explicit transaction
    commit() / rollback() close it

SQLAlchemyConnection implements the contract over a SQLAlchemy Engine for
PostgreSQL (psycopg2) and MySQL (pymysql). Raw SQL is sent with
exec_driver_sql and no bind parameters, so colons and percent signs in
migration scripts reach the database unchanged.

Example:
    >>> from utils.connection import SQLAlchemyConnection
    >>>
    >>> with SQLAlchemyConnection(engine) as conn:
    ...     conn.execute("CREATE TABLE t (id INTEGER)")
    ...     rows = conn.query("SELECT id FROM t")
    ...     print(rows.columns, len(rows))
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import ConnectionFailedError, QueryExecutionError, TransactionError

logger = logging.getLogger(__name__)


class Row:
    """One result row, addressable by position or by column name.

    Example:
        >>> row = Row(['id', 'name'], [1, 'alice'])
        >>> row[0], row['name']
        (1, 'alice')
    """

    __slots__ = ('columns', 'values')

    def __init__(self, columns: Sequence[str], values: Sequence[Any]):
        self.columns = tuple(columns)
        self.values = tuple(values)

    def __getitem__(self, key: Union[int, str]) -> Any:
        if isinstance(key, str):
            try:
                return self.values[self.columns.index(key)]
            except ValueError:
                raise KeyError(key)
        return self.values[key]

    def get(self, column: str, default: Any = None) -> Any:
        """Get a value by column name, or default if the column is absent."""
        if column in self.columns:
            index = self.columns.index(column)
            if index < len(self.values):
                return self.values[index]
        return default

    def as_dict(self) -> Dict[str, Any]:
        return dict(zip(self.columns, self.values))

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __eq__(self, other) -> bool:
        if isinstance(other, Row):
            return self.columns == other.columns and self.values == other.values
        return NotImplemented

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"


class ResultSet:
    """Ordered column names and rows returned by Connection.query()."""

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]] = ()):
        self.columns = tuple(columns)
        self.rows: List[Row] = [
            row if isinstance(row, Row) else Row(self.columns, row) for row in rows
        ]

    def column_index(self, column: str) -> Optional[int]:
        """Get the position of a column, or None if absent."""
        try:
            return self.columns.index(column)
        except ValueError:
            return None

    def first(self) -> Optional[Row]:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """Get the first value of the first row, or None for an empty result."""
        row = self.first()
        if row is None or not len(row):
            return None
        return row[0]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> Row:
        return self.rows[index]

    def __bool__(self) -> bool:
        return bool(self.rows)

    def __repr__(self) -> str:
        return f"ResultSet(columns={list(self.columns)!r}, rows={len(self.rows)})"


class Connection(ABC):
    """
    Abstract database connection.

    Implementations raise ConnectionFailedError when used while
    disconnected, QueryExecutionError when a statement is rejected and
    TransactionError for rejected begin/commit/rollback calls. Instances are
    not safe for concurrent use from several threads.
    """

    database_type: Optional[str] = None

    @abstractmethod
    def connect(self) -> None:
        """Open the connection."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection; safe to call when already closed."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the connection is open."""

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether an explicit transaction is open."""

    @abstractmethod
    def execute(self, sql: str) -> None:
        """Run a statement that returns no rows."""

    @abstractmethod
    def query(self, sql: str) -> ResultSet:
        """Run a statement and return its rows."""

    @abstractmethod
    def begin_transaction(self) -> None:
        """Open an explicit transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Commit the open transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Roll back the open transaction."""

    def __enter__(self) -> 'Connection':
        if not self.is_connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False


class SQLAlchemyConnection(Connection):
    """
    Connection backed by a SQLAlchemy Engine.

    Outside an explicit transaction every execute() is committed on its own
    and every query() ends its implicit transaction, so the connection is
    always idle between calls.

    Attributes:
        engine: SQLAlchemy Engine to draw the connection from
        database_type: Dialect name used in error reports
        dispose_engine: Dispose the engine on disconnect()
    """

    def __init__(
        self,
        engine: Engine,
        database_type: Optional[str] = None,
        dispose_engine: bool = True
    ):
        self.engine = engine
        self.database_type = database_type or engine.dialect.name
        self.dispose_engine = dispose_engine
        self._connection = None
        self._transaction = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def connect(self) -> None:
        if self._connection is not None:
            return
        try:
            self._connection = self.engine.connect().execution_options(no_parameters=True)
            logger.debug(f"Connected to {self.database_type} database")
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to {self.database_type} database: {e}")
            raise ConnectionFailedError(
                f"Failed to connect to {self.database_type} database: {e}",
                database_type=self.database_type
            ) from e

    def disconnect(self) -> None:
        if self._connection is None:
            return
        try:
            if self._transaction is not None:
                logger.warning("Disconnecting with an open transaction; rolling back")
                self._transaction.rollback()
            self._connection.close()
        except SQLAlchemyError as e:
            logger.warning(f"Error while closing connection: {e}")
        finally:
            self._transaction = None
            self._connection = None
            if self.dispose_engine:
                self.engine.dispose()

    def _require_connection(self):
        if self._connection is None:
            raise ConnectionFailedError(
                "Connection is not open", database_type=self.database_type
            )
        return self._connection

    def _end_implicit(self, conn, success: bool) -> None:
        if self._transaction is None and conn.in_transaction():
            if success:
                conn.commit()
            else:
                conn.rollback()

    def execute(self, sql: str) -> None:
        conn = self._require_connection()
        try:
            conn.exec_driver_sql(sql)
            self._end_implicit(conn, success=True)
        except SQLAlchemyError as e:
            self._end_implicit(conn, success=False)
            raise QueryExecutionError(
                f"Statement failed: {e}", sql=sql, database_type=self.database_type
            ) from e

    def query(self, sql: str) -> ResultSet:
        conn = self._require_connection()
        try:
            result = conn.exec_driver_sql(sql)
            columns = list(result.keys())
            rows = [tuple(row) for row in result.fetchall()]
            self._end_implicit(conn, success=True)
        except SQLAlchemyError as e:
            self._end_implicit(conn, success=False)
            raise QueryExecutionError(
                f"Query failed: {e}", sql=sql, database_type=self.database_type
            ) from e
        return ResultSet(columns, rows)

    def begin_transaction(self) -> None:
        conn = self._require_connection()
        if self._transaction is not None:
            raise TransactionError(
                "A transaction is already open", database_type=self.database_type
            )
        try:
            if conn.in_transaction():
                conn.commit()
            self._transaction = conn.begin()
        except SQLAlchemyError as e:
            raise TransactionError(
                f"Failed to begin transaction: {e}", database_type=self.database_type
            ) from e

    def commit(self) -> None:
        self._require_connection()
        if self._transaction is None:
            raise TransactionError(
                "Cannot commit: no transaction is open", database_type=self.database_type
            )
        transaction, self._transaction = self._transaction, None
        try:
            transaction.commit()
        except SQLAlchemyError as e:
            raise TransactionError(
                f"Failed to commit transaction: {e}", database_type=self.database_type
            ) from e

    def rollback(self) -> None:
        self._require_connection()
        if self._transaction is None:
            raise TransactionError(
                "Cannot roll back: no transaction is open", database_type=self.database_type
            )
        transaction, self._transaction = self._transaction, None
        try:
            transaction.rollback()
        except SQLAlchemyError as e:
            raise TransactionError(
                f"Failed to roll back transaction: {e}", database_type=self.database_type
            ) from e
