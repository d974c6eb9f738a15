"""
===================================
In-memory mock database connection.
===================================

MockConnection implements the Connection contract without a database. It
records every statement passed to execute() and query(), returns queued
results in order, and can be told to fail each kind of operation. It also
enforces the same connection and transaction state rules as a real driver:
using it while disconnected raises ConnectionFailedError, a nested
begin_transaction() or a commit()/rollback() without an open transaction
raises TransactionError.

Registered in the driver registry under DatabaseType.MOCK.

Example:
    >>> conn = MockConnection()
    >>> conn.connect()
    >>> conn.add_result(['id', 'name'], [(1, 'alice')])
    >>> conn.query("SELECT id, name FROM users").first()['name']
    'alice'
    >>> conn.executed_queries
    ['SELECT id, name FROM users']
"""

import logging
from collections import deque
from typing import Any, Deque, List, Sequence

from core.errors import ConnectionFailedError, QueryExecutionError, TransactionError
from utils.connection import Connection, ResultSet

logger = logging.getLogger(__name__)


class MockConnection(Connection):
    """
    Recording connection for tests and dry runs.

    Attributes:
        executed_queries: Every SQL string passed to execute() or query()
        should_fail_connect: Make connect() raise ConnectionFailedError
        should_fail_execute: Make execute() raise QueryExecutionError
        should_fail_query: Make query() raise QueryExecutionError
        should_fail_transaction: Make begin/commit/rollback raise TransactionError
        transaction_log: Sequence of 'begin', 'commit' and 'rollback' events
    """

    database_type = 'mock'

    def __init__(self, db_config=None):
        self.db_config = db_config
        self.executed_queries: List[str] = []
        self.transaction_log: List[str] = []
        self.should_fail_connect = False
        self.should_fail_execute = False
        self.should_fail_query = False
        self.should_fail_transaction = False
        self._results: Deque[ResultSet] = deque()
        self._connected = False
        self._in_transaction = False

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def add_result(self, columns: Sequence[str], rows: Sequence[Sequence[Any]] = ()) -> None:
        """Queue a result for the next query() call."""
        self._results.append(ResultSet(columns, rows))

    def clear_executed_queries(self) -> None:
        self.executed_queries.clear()

    @property
    def pending_results(self) -> int:
        return len(self._results)

    # ------------------------------------------------------------------
    # Connection contract
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    def connect(self) -> None:
        if self.should_fail_connect:
            raise ConnectionFailedError("Mock connection refused", database_type='mock')
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False
        self._in_transaction = False

    def _require_connection(self) -> None:
        if not self._connected:
            raise ConnectionFailedError("Connection is not open", database_type='mock')

    def execute(self, sql: str) -> None:
        self._require_connection()
        if self.should_fail_execute:
            raise QueryExecutionError("Mock execute failure", sql=sql, database_type='mock')
        self.executed_queries.append(sql)

    def query(self, sql: str) -> ResultSet:
        self._require_connection()
        if self.should_fail_query:
            raise QueryExecutionError("Mock query failure", sql=sql, database_type='mock')
        self.executed_queries.append(sql)
        if self._results:
            return self._results.popleft()
        return ResultSet([], [])

    def begin_transaction(self) -> None:
        self._require_connection()
        if self.should_fail_transaction:
            raise TransactionError("Mock transaction failure", database_type='mock')
        if self._in_transaction:
            raise TransactionError("A transaction is already open", database_type='mock')
        self._in_transaction = True
        self.transaction_log.append('begin')

    def commit(self) -> None:
        self._require_connection()
        if self.should_fail_transaction:
            raise TransactionError("Mock transaction failure", database_type='mock')
        if not self._in_transaction:
            raise TransactionError("Cannot commit: no transaction is open", database_type='mock')
        self._in_transaction = False
        self.transaction_log.append('commit')

    def rollback(self) -> None:
        self._require_connection()
        if self.should_fail_transaction:
            raise TransactionError("Mock transaction failure", database_type='mock')
        if not self._in_transaction:
            raise TransactionError("Cannot roll back: no transaction is open", database_type='mock')
        self._in_transaction = False
        self.transaction_log.append('rollback')
