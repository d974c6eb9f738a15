"""
==============================
Chainable table query builder.
==============================

ChainableQuery lets a caller start from a table name and chain clauses
without declaring the statement kind up front:

    db.table('users').where('id', '=', 1).set('name', 'x').execute()
    # UPDATE users SET name = 'x' WHERE id = 1

The statement kind is resolved lazily from the last kind-revealing call:

    select / join / left_join / right_join / full_join /
    order_by / limit / offset                  -> SELECT
    add_value / set_values                     -> INSERT
    set / set_multiple                         -> UPDATE
    delete                                     -> DELETE

Predicates added with where() are always recorded in a pending list and,
when a builder of the current kind already exists, applied to it directly.
When a kind-revealing call materializes a builder for the first time, every
pending predicate is replayed into it in call order and the pending list is
cleared, so a where() written before set() or delete() is never dropped.

Build errors do not interrupt the chain. The first QueryBuildError raised by
a mutator is latched; later mutators become no-ops and the next terminal
call (to_sql, get, first, execute) raises it.
"""

import functools
import logging
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Union

from core.config import DatabaseType
from core.errors import QueryBuildError, QueryUsageError
from sql.query_builder import (
    DeleteQuery,
    Direction,
    InsertQuery,
    SelectQuery,
    UpdateQuery,
    WhereClause,
)
from sql.values import SqlValue

logger = logging.getLogger(__name__)


class QueryKind(Enum):
    """Statement kind currently selected on a ChainableQuery."""

    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


_BUILDER_TYPES = {
    QueryKind.SELECT: SelectQuery,
    QueryKind.INSERT: InsertQuery,
    QueryKind.UPDATE: UpdateQuery,
    QueryKind.DELETE: DeleteQuery,
}


def _latching(method: Callable) -> Callable:
    """Turn a mutator into a no-op once an error is latched, and latch new ones."""

    @functools.wraps(method)
    def wrapper(self: 'ChainableQuery', *args, **kwargs) -> 'ChainableQuery':
        if self.deferred_error is not None:
            return self
        try:
            method(self, *args, **kwargs)
        except QueryBuildError as e:
            logger.debug(f"Latched build error on {self.table_name}: {e}")
            self.deferred_error = e
        return self

    return wrapper


class ChainableQuery:
    """
    Fluent query builder bound to a table and a connection.

    The connection is only used by the terminal operations get(), first()
    and execute(); the builder itself never opens or closes it.

    Attributes:
        connection: Object providing execute(sql) and query(sql)
        table_name: Target table
        dialect: Database type passed to the statement renderers
        current_kind: Kind selected by the last kind-revealing call
        pending_predicates: Predicates waiting to be replayed into a
            builder materialized later
        deferred_error: First build error raised inside the chain
    """

    def __init__(self, connection, table_name: str, dialect: Optional[DatabaseType] = None):
        self.connection = connection
        self.table_name = table_name
        self.dialect = dialect
        self.current_kind = QueryKind.SELECT
        self.pending_predicates: List[WhereClause] = []
        self.deferred_error: Optional[QueryBuildError] = None

        self.select_query: Optional[SelectQuery] = None
        self.insert_query: Optional[InsertQuery] = None
        self.update_query: Optional[UpdateQuery] = None
        self.delete_query: Optional[DeleteQuery] = None

    # ------------------------------------------------------------------
    # Internal state handling
    # ------------------------------------------------------------------

    def _builder(self, kind: QueryKind):
        return getattr(self, f"{kind.value}_query")

    def _resolve(self, kind: QueryKind):
        """Switch to kind, materializing and catching up its builder if needed."""
        self.current_kind = kind
        builder = self._builder(kind)
        if builder is None:
            builder = _BUILDER_TYPES[kind](self.table_name)
            setattr(self, f"{kind.value}_query", builder)
            if self.pending_predicates:
                if kind is QueryKind.INSERT:
                    raise QueryBuildError(
                        f"WHERE is not valid for INSERT INTO {self.table_name}"
                    )
                for clause in self.pending_predicates:
                    builder.add_where_clause(clause)
                self.pending_predicates = []
        return builder

    def _raise_deferred(self) -> None:
        if self.deferred_error is not None:
            raise self.deferred_error

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @_latching
    def where(self, column: str, operator: str, value: Any):
        """Add a predicate to the statement, whatever its kind turns out to be."""
        clause = WhereClause(column, operator, SqlValue.coerce(value))
        self.pending_predicates.append(clause)

        builder = self._builder(self.current_kind)
        if builder is None:
            return
        if self.current_kind is QueryKind.INSERT:
            raise QueryBuildError(f"WHERE is not valid for INSERT INTO {self.table_name}")
        builder.add_where_clause(clause)

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    @_latching
    def select(self, columns):
        """Set the projected columns (default *)."""
        self._resolve(QueryKind.SELECT).select(columns)

    @_latching
    def join(self, table: str, left_column: str, right_column: str):
        """Add an INNER JOIN."""
        self._resolve(QueryKind.SELECT).join(table, left_column, right_column)

    @_latching
    def left_join(self, table: str, left_column: str, right_column: str):
        self._resolve(QueryKind.SELECT).left_join(table, left_column, right_column)

    @_latching
    def right_join(self, table: str, left_column: str, right_column: str):
        self._resolve(QueryKind.SELECT).right_join(table, left_column, right_column)

    @_latching
    def full_join(self, table: str, left_column: str, right_column: str):
        self._resolve(QueryKind.SELECT).full_join(table, left_column, right_column)

    @_latching
    def order_by(self, column: str, direction: Union[Direction, str] = Direction.ASC):
        self._resolve(QueryKind.SELECT).order_by(column, direction)

    @_latching
    def limit(self, count: int):
        self._resolve(QueryKind.SELECT).limit(count)

    @_latching
    def offset(self, count: int):
        self._resolve(QueryKind.SELECT).offset(count)

    # ------------------------------------------------------------------
    # INSERT / UPDATE / DELETE
    # ------------------------------------------------------------------

    @_latching
    def add_value(self, column: str, value: Any):
        """Add a column value for INSERT."""
        self._resolve(QueryKind.INSERT).add_value(column, value)

    @_latching
    def set_values(self, values: Mapping[str, Any]):
        """Add several column values for INSERT, in mapping order."""
        self._resolve(QueryKind.INSERT).set_values(values)

    @_latching
    def set(self, column: str, value: Any):
        """Set a column value for UPDATE."""
        self._resolve(QueryKind.UPDATE).set(column, value)

    @_latching
    def set_multiple(self, values: Mapping[str, Any]):
        """Set several column values for UPDATE, in mapping order."""
        self._resolve(QueryKind.UPDATE).set_multiple(values)

    @_latching
    def delete(self):
        """Turn the statement into a DELETE."""
        self._resolve(QueryKind.DELETE)

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def to_sql(self) -> str:
        """
        Render the statement for the current kind.

        Raises:
            QueryBuildError: The first error latched by the chain
        """
        self._raise_deferred()
        try:
            builder = self._resolve(self.current_kind)
        except QueryBuildError as e:
            self.deferred_error = e
            raise
        return builder.to_sql(self.dialect)

    def get(self):
        """
        Execute the SELECT and return its result set.

        Raises:
            QueryBuildError: Latched build error
            QueryUsageError: If the current kind is not SELECT
        """
        self._raise_deferred()
        if self.current_kind is not QueryKind.SELECT:
            raise QueryUsageError(
                f"get() requires a SELECT, but the query on {self.table_name} "
                f"is {self.current_kind.name}; use execute()"
            )
        sql = self.to_sql()
        logger.debug(f"Query: {sql}")
        return self.connection.query(sql)

    def first(self):
        """
        Execute the SELECT with LIMIT 1.

        Returns:
            The first row, or None if the query matched nothing
        """
        self.limit(1)
        result = self.get()
        return result.first()

    def execute(self) -> None:
        """
        Execute the INSERT, UPDATE or DELETE.

        Raises:
            QueryBuildError: Latched build error
            QueryUsageError: If the current kind is SELECT
        """
        self._raise_deferred()
        if self.current_kind is QueryKind.SELECT:
            raise QueryUsageError(
                f"execute() cannot run a SELECT on {self.table_name}; use get()"
            )
        sql = self.to_sql()
        logger.debug(f"Execute: {sql}")
        self.connection.execute(sql)

    def __repr__(self) -> str:
        return (
            f"ChainableQuery(table={self.table_name!r}, kind={self.current_kind.name}, "
            f"pending={len(self.pending_predicates)})"
        )
