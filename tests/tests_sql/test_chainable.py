"""
===============================================
Comprehensive pytest suite for sql/chainable.py
===============================================

Sections:
---------
1. Unit tests - Kind resolution and rendering
2. Integration tests - Terminal operations against MockConnection
3. Edge case tests - Predicate replay and latched errors
4. Regression tests - Predicates written before set()/delete()

Available markers:
------------------
unit, integration, edge_case, regression

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_chainable.py -v
By category:        pytest tests/tests_sql/test_chainable.py -m regression
With coverage:      pytest tests/tests_sql/test_chainable.py --cov=sql.chainable
"""

import pytest

from core.errors import QueryBuildError, QueryUsageError
from sql.chainable import ChainableQuery, QueryKind


def table(connection, name='users'):
    return ChainableQuery(connection, name)


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_default_kind_is_select(mock_connection):
    """A fresh chain renders SELECT *."""
    query = table(mock_connection)
    assert query.current_kind is QueryKind.SELECT
    assert query.to_sql() == 'SELECT * FROM users'


@pytest.mark.unit
def test_select_chain(mock_connection):
    """select()/where() render a SELECT."""
    sql = (
        table(mock_connection)
        .select(['id', 'name'])
        .where('age', '>=', 18)
        .where('active', '=', True)
        .to_sql()
    )
    assert sql == 'SELECT id, name FROM users WHERE age >= 18 AND active = TRUE'


@pytest.mark.unit
def test_insert_chain(mock_connection):
    """add_value() switches to INSERT."""
    sql = table(mock_connection).add_value('name', "O'Reilly").add_value('age', 3).to_sql()
    assert sql == "INSERT INTO users (name, age) VALUES ('O''Reilly', 3)"


@pytest.mark.unit
def test_update_chain(mock_connection):
    """set() switches to UPDATE."""
    sql = table(mock_connection).set('name', 'x').where('id', '=', 1).to_sql()
    assert sql == "UPDATE users SET name = 'x' WHERE id = 1"


@pytest.mark.unit
def test_delete_chain(mock_connection):
    """delete() switches to DELETE."""
    assert table(mock_connection).delete().where('id', '=', 9).to_sql() == 'DELETE FROM users WHERE id = 9'


@pytest.mark.unit
def test_last_kind_revealing_call_wins(mock_connection):
    """The kind follows the most recent kind-revealing call."""
    query = table(mock_connection).select(['id']).set('name', 'x')
    assert query.current_kind is QueryKind.UPDATE
    assert query.to_sql() == "UPDATE users SET name = 'x'"


@pytest.mark.unit
def test_set_values_and_set_multiple(mock_connection):
    """Mapping variants add entries in order."""
    assert table(mock_connection).set_values({'a': 1, 'b': 2}).to_sql() == 'INSERT INTO users (a, b) VALUES (1, 2)'
    assert table(mock_connection).set_multiple({'a': 1, 'b': None}).to_sql() == 'UPDATE users SET a = 1, b = NULL'


# ======================
# 2. INTEGRATION TESTS
# ======================

@pytest.mark.integration
def test_get_runs_select_through_connection(mock_connection):
    """get() sends the SELECT to query() and returns its result."""
    mock_connection.add_result(['id', 'name'], [(1, 'alice'), (2, 'bob')])

    result = table(mock_connection).select(['id', 'name']).get()

    assert mock_connection.executed_queries == ['SELECT id, name FROM users']
    assert [row['name'] for row in result] == ['alice', 'bob']


@pytest.mark.integration
def test_first_adds_limit_one(mock_connection):
    """first() limits to one row and returns it."""
    mock_connection.add_result(['id'], [(7,)])

    row = table(mock_connection).where('id', '=', 7).first()

    assert mock_connection.executed_queries == ['SELECT * FROM users WHERE id = 7 LIMIT 1']
    assert row['id'] == 7


@pytest.mark.integration
def test_first_returns_none_for_empty_result(mock_connection):
    """first() on an empty result returns None."""
    assert table(mock_connection).first() is None


@pytest.mark.integration
def test_execute_runs_update_through_connection(mock_connection):
    """execute() sends UPDATE to execute()."""
    table(mock_connection).where('id', '=', 1).set('name', 'x').execute()
    assert mock_connection.executed_queries == ["UPDATE users SET name = 'x' WHERE id = 1"]


@pytest.mark.integration
def test_get_on_update_is_usage_error(mock_connection):
    """get() refuses non-SELECT statements."""
    with pytest.raises(QueryUsageError, match='use execute'):
        table(mock_connection).set('name', 'x').get()
    assert mock_connection.executed_queries == []


@pytest.mark.integration
def test_execute_on_select_is_usage_error(mock_connection):
    """execute() refuses SELECT statements."""
    with pytest.raises(QueryUsageError, match='use get'):
        table(mock_connection).select(['id']).execute()
    assert mock_connection.executed_queries == []


# ===============
# 3. EDGE CASES
# ===============

@pytest.mark.edge_case
def test_where_on_insert_latches_error(mock_connection):
    """where() after add_value() latches a build error raised at the terminal call."""
    query = table(mock_connection).add_value('name', 'x').where('id', '=', 1)

    assert isinstance(query.deferred_error, QueryBuildError)
    with pytest.raises(QueryBuildError, match='WHERE is not valid for INSERT'):
        query.execute()
    assert mock_connection.executed_queries == []


@pytest.mark.edge_case
def test_pending_where_then_insert_latches_error(mock_connection):
    """Pending predicates cannot be replayed into an INSERT."""
    query = table(mock_connection).where('id', '=', 1).add_value('name', 'x')
    with pytest.raises(QueryBuildError):
        query.to_sql()


@pytest.mark.edge_case
def test_latched_error_makes_later_calls_noops(mock_connection):
    """After the first error, further mutators do nothing."""
    query = table(mock_connection).limit(-1)
    first_error = query.deferred_error

    query.select(['id']).where('id', '=', object())

    assert query.deferred_error is first_error
    assert query.select_query.columns == []
    with pytest.raises(QueryBuildError, match='LIMIT'):
        query.get()


@pytest.mark.edge_case
def test_unconvertible_value_is_latched(mock_connection):
    """A value without a literal form is reported at the terminal call."""
    query = table(mock_connection).where('id', '=', object())
    with pytest.raises(QueryBuildError, match='Cannot convert'):
        query.to_sql()


@pytest.mark.edge_case
def test_repr_mentions_table_and_kind(mock_connection):
    """repr() summarizes the chain state."""
    text = repr(table(mock_connection).set('a', 1))
    assert "users" in text and "UPDATE" in text


# =====================
# 4. REGRESSION TESTS
# =====================

@pytest.mark.regression
def test_where_before_set_is_not_dropped(mock_connection):
    """A predicate written before set() is replayed into the UPDATE."""
    sql = table(mock_connection).where('id', '=', 1).set('name', 'x').to_sql()
    assert sql == "UPDATE users SET name = 'x' WHERE id = 1"


@pytest.mark.regression
def test_where_before_delete_is_not_dropped(mock_connection):
    """A predicate written before delete() is replayed into the DELETE."""
    sql = table(mock_connection).where('id', '=', 1).where('a', '<', 2).delete().to_sql()
    assert sql == 'DELETE FROM users WHERE id = 1 AND a < 2'


@pytest.mark.regression
def test_pending_predicates_cleared_after_replay(mock_connection):
    """Replayed predicates are not applied a second time."""
    query = table(mock_connection).where('id', '=', 1).set('name', 'x')
    assert query.pending_predicates == []
    assert query.to_sql() == "UPDATE users SET name = 'x' WHERE id = 1"


@pytest.mark.regression
def test_empty_set_multiple_still_selects_update(mock_connection):
    """set_multiple({}) switches the chain to UPDATE and renders without raising."""
    query = table(mock_connection).where('id', '=', 1).set_multiple({})

    assert query.current_kind is QueryKind.UPDATE
    assert query.deferred_error is None
    assert query.to_sql() == 'UPDATE users SET  WHERE id = 1'
