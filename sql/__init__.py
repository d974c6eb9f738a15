"""
=========================================
SQL construction package for the toolkit.
=========================================

This package builds SQL text from typed fragments. Nothing here talks to a
database; rendered strings are handed to a connection's execute()/query().

The package is organized by concern:
    - values.py: SqlValue model and literal rendering (the only escaping)
    - query_builder.py: SELECT/INSERT/UPDATE/DELETE builders and probes
    - chainable.py: ChainableQuery, the table-first fluent builder with
      deferred statement-kind resolution
    - ddl.py: Migration tracking table DDL

Example:
    >>> from sql import SelectQuery, UpdateQuery
    >>>
    >>> SelectQuery('users').select(['id', 'name']).to_sql()
    'SELECT id, name FROM users'
    >>> UpdateQuery('users').set('name', 'x').where('id', '=', 1).to_sql()
    "UPDATE users SET name = 'x' WHERE id = 1"
"""

__version__ = "0.1.0"
__all__ = [
    # Values
    'SqlValue', 'SqlValueKind', 'to_sql_text',
    # Statement builders
    'SelectQuery', 'InsertQuery', 'UpdateQuery', 'DeleteQuery',
    'Direction', 'JoinKind', 'WhereClause', 'JoinClause', 'OrderBy', 'ValuePair',
    'where_builder', 'pagination_builder', 'check_table_exists_sql',
    # Chainable builder
    'ChainableQuery', 'QueryKind',
    # DDL
    'create_migrations_table_sql'
]

from .chainable import ChainableQuery, QueryKind
from .ddl import create_migrations_table_sql
from .query_builder import (
    DeleteQuery,
    Direction,
    InsertQuery,
    JoinClause,
    JoinKind,
    OrderBy,
    SelectQuery,
    UpdateQuery,
    ValuePair,
    WhereClause,
    check_table_exists_sql,
    pagination_builder,
    where_builder,
)
from .values import SqlValue, SqlValueKind, to_sql_text
