"""
================================================
Comprehensive pytest suite for utils/database.py
================================================

Sections:
---------
1. Unit tests - Delegation to the connection
2. Integration tests - transaction() and table() against MockConnection

Available markers:
------------------
unit, integration

How to Execute:
---------------
All tests:          pytest tests/tests_utils/test_database.py -v
With coverage:      pytest tests/tests_utils/test_database.py --cov=utils.database
"""

import pytest

from core.config import DatabaseConfig, DatabaseType
from core.errors import QueryExecutionError
from sql.chainable import ChainableQuery
from utils.database import Database
from utils.mock_connection import MockConnection


@pytest.fixture
def db(mock_connection):
    return Database(mock_connection, DatabaseType.POSTGRESQL)


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_connect_uses_registry():
    """Database.connect() opens a connection for the configured type."""
    settings = DatabaseConfig(DatabaseType.MOCK, 'localhost', 0, 'app', '', '')
    database = Database.connect(settings)

    assert isinstance(database.connection, MockConnection)
    assert database.connection.is_connected
    assert database.db_type is DatabaseType.MOCK


@pytest.mark.unit
def test_execute_and_query_delegate(db, mock_connection):
    """execute() and query() go to the connection."""
    mock_connection.add_result(['n'], [(1,)])

    db.execute("DELETE FROM t")
    assert db.query("SELECT COUNT(*) AS n FROM t").scalar() == 1
    assert mock_connection.executed_queries == ["DELETE FROM t", "SELECT COUNT(*) AS n FROM t"]


@pytest.mark.unit
def test_table_returns_chainable_query(db, mock_connection):
    """table() starts a chain bound to the connection and dialect."""
    query = db.table('users')
    assert isinstance(query, ChainableQuery)
    assert query.connection is mock_connection
    assert query.dialect is DatabaseType.POSTGRESQL


@pytest.mark.unit
def test_context_manager_disconnects(mock_connection):
    """Leaving the with-block closes the connection."""
    with Database(mock_connection, DatabaseType.MOCK):
        pass
    assert not mock_connection.is_connected


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_transaction_commits_on_success(db, mock_connection):
    """A block that completes is committed."""
    with db.transaction():
        db.table('users').add_value('name', "O'Reilly").execute()

    assert mock_connection.transaction_log == ['begin', 'commit']
    assert mock_connection.executed_queries == ["INSERT INTO users (name) VALUES ('O''Reilly')"]


@pytest.mark.integration
def test_transaction_rolls_back_and_reraises(db, mock_connection):
    """A block that raises is rolled back and the error propagates."""
    mock_connection.should_fail_execute = True

    with pytest.raises(QueryExecutionError):
        with db.transaction():
            db.execute("INSERT INTO t VALUES (1)")

    assert mock_connection.transaction_log == ['begin', 'rollback']
    assert not mock_connection.in_transaction


@pytest.mark.integration
def test_explicit_transaction_calls(db, mock_connection):
    """begin/commit/rollback delegate to the connection."""
    db.begin_transaction()
    db.rollback()
    db.begin_transaction()
    db.commit()
    assert mock_connection.transaction_log == ['begin', 'rollback', 'begin', 'commit']
