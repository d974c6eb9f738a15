"""
==============================
SQL Statement Builder Classes.
==============================

This module provides accumulator objects for the four DML statement kinds.
Each builder collects typed fragments through fluent mutators (every mutator
returns the builder) and renders exactly one statement kind with to_sql().

Statement Builders:
- SelectQuery: columns, joins, predicates, ordering, LIMIT/OFFSET
- InsertQuery: ordered column/value pairs
- UpdateQuery: ordered SET pairs and predicates
- DeleteQuery: predicates

Helpers:
- where_builder: Render a predicate list joined with AND
- pagination_builder: Calculate LIMIT and OFFSET for 1-based pages

Metadata Query Functions:
- check_table_exists_sql: Probe whether a table exists

Rendering order is fixed:
    SELECT <cols|*> FROM <table> [<KIND> JOIN <t> ON <l> = <r>]...
        [WHERE <p1> AND <p2>...] [ORDER BY <col> ASC|DESC] [LIMIT n] [OFFSET n]
    INSERT INTO <table> (<c1>, ...) VALUES (<v1>, ...)
    UPDATE <table> SET <c1> = <v1>, ... [WHERE ...]
    DELETE FROM <table> [WHERE ...]

Values are rendered through sql.values.SqlValue; column names, table names
and predicate operators are interpolated verbatim. No semantic validation is
performed (an UPDATE without SET pairs renders invalid SQL and is left for
the database to reject).

Usage:
    from sql.query_builder import SelectQuery, Direction

    sql = (
        SelectQuery('users')
        .select(['id', 'name'])
        .left_join('posts', 'users.id', 'posts.user_id')
        .where('age', '>=', 18)
        .order_by('name', Direction.ASC)
        .limit(10)
        .to_sql()
    )
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from core.config import DatabaseType
from core.errors import QueryBuildError
from sql.values import SqlValue


class Direction(Enum):
    """ORDER BY direction."""

    ASC = 'ASC'
    DESC = 'DESC'

    @classmethod
    def parse(cls, value) -> 'Direction':
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise QueryBuildError(f"Invalid sort direction '{value}'")


class JoinKind(Enum):
    """JOIN kind with its rendered keyword."""

    INNER = 'INNER JOIN'
    LEFT = 'LEFT JOIN'
    RIGHT = 'RIGHT JOIN'
    FULL_OUTER = 'FULL OUTER JOIN'


@dataclass(frozen=True)
class WhereClause:
    """Single predicate: <column> <operator> <value>."""

    column: str
    operator: str
    value: SqlValue

    def to_sql(self) -> str:
        return f"{self.column} {self.operator} {self.value.to_sql()}"


@dataclass(frozen=True)
class JoinClause:
    kind: JoinKind
    table: str
    left_column: str
    right_column: str

    def to_sql(self) -> str:
        return f"{self.kind.value} {self.table} ON {self.left_column} = {self.right_column}"


@dataclass(frozen=True)
class OrderBy:
    column: str
    direction: Direction = Direction.ASC


@dataclass(frozen=True)
class ValuePair:
    """Column/value pair for INSERT values and UPDATE SET clauses."""

    column: str
    value: SqlValue


def where_builder(clauses: Sequence[WhereClause]) -> str:
    """
    Render a predicate list.

    Args:
        clauses: Predicates in insertion order

    Returns:
        Predicates joined with AND (without the WHERE keyword), or an empty
        string when there are none
    """
    return " AND ".join(clause.to_sql() for clause in clauses)


def pagination_builder(page: int, page_size: int) -> Dict[str, int]:
    """
    Calculate LIMIT and OFFSET for pagination.

    Args:
        page: Page number (1-based)
        page_size: Number of records per page

    Returns:
        Dictionary with limit and offset values

    Raises:
        QueryBuildError: If page < 1 or page_size < 0
    """
    if page < 1:
        raise QueryBuildError(f"Page number must be >= 1, got {page}")
    if page_size < 0:
        raise QueryBuildError(f"Page size must be >= 0, got {page_size}")
    return {
        'limit': page_size,
        'offset': (page - 1) * page_size
    }


def _check_count(name: str, count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise QueryBuildError(f"{name} must be a non-negative integer, got {count!r}")
    return count


class _PredicateMixin:
    """WHERE support shared by SELECT, UPDATE and DELETE builders."""

    where_clauses: List[WhereClause]

    def where(self, column: str, operator: str, value: Any):
        """Add a predicate; all predicates are joined with AND."""
        self.where_clauses.append(WhereClause(column, operator, SqlValue.coerce(value)))
        return self

    def add_where_clause(self, clause: WhereClause):
        """Add an already-built predicate."""
        self.where_clauses.append(clause)
        return self

    def _render_where(self) -> str:
        if not self.where_clauses:
            return ""
        return " WHERE " + where_builder(self.where_clauses)


class SelectQuery(_PredicateMixin):
    """Builder for SELECT statements.

    Attributes:
        table: Table to select from
        columns: Projected columns (empty renders *)
        joins: JOIN clauses in insertion order
        where_clauses: Predicates in insertion order
        order: Optional single ORDER BY
        limit_value: Optional LIMIT
        offset_value: Optional OFFSET
    """

    def __init__(self, table: str):
        self.table = table
        self.columns: List[str] = []
        self.joins: List[JoinClause] = []
        self.where_clauses: List[WhereClause] = []
        self.order: Optional[OrderBy] = None
        self.limit_value: Optional[int] = None
        self.offset_value: Optional[int] = None

    def select(self, columns: Iterable[str]) -> 'SelectQuery':
        """Set the projected columns, replacing any previous projection."""
        if isinstance(columns, str):
            columns = [columns]
        self.columns = list(columns)
        return self

    def _add_join(self, kind: JoinKind, table: str, left_column: str, right_column: str) -> 'SelectQuery':
        self.joins.append(JoinClause(kind, table, left_column, right_column))
        return self

    def join(self, table: str, left_column: str, right_column: str) -> 'SelectQuery':
        """Add an INNER JOIN."""
        return self._add_join(JoinKind.INNER, table, left_column, right_column)

    def left_join(self, table: str, left_column: str, right_column: str) -> 'SelectQuery':
        return self._add_join(JoinKind.LEFT, table, left_column, right_column)

    def right_join(self, table: str, left_column: str, right_column: str) -> 'SelectQuery':
        return self._add_join(JoinKind.RIGHT, table, left_column, right_column)

    def full_join(self, table: str, left_column: str, right_column: str) -> 'SelectQuery':
        return self._add_join(JoinKind.FULL_OUTER, table, left_column, right_column)

    def order_by(self, column: str, direction=Direction.ASC) -> 'SelectQuery':
        """Set the ORDER BY column; a later call replaces an earlier one."""
        self.order = OrderBy(column, Direction.parse(direction))
        return self

    def limit(self, count: int) -> 'SelectQuery':
        self.limit_value = _check_count('LIMIT', count)
        return self

    def offset(self, count: int) -> 'SelectQuery':
        self.offset_value = _check_count('OFFSET', count)
        return self

    def paginate(self, page: int, page_size: int) -> 'SelectQuery':
        """Set LIMIT/OFFSET for a 1-based page."""
        paging = pagination_builder(page, page_size)
        self.limit_value = paging['limit']
        self.offset_value = paging['offset']
        return self

    def to_sql(self, dialect: Optional[DatabaseType] = None) -> str:
        column_clause = ", ".join(self.columns) if self.columns else "*"
        sql = f"SELECT {column_clause} FROM {self.table}"

        for join_clause in self.joins:
            sql += " " + join_clause.to_sql()

        sql += self._render_where()

        if self.order is not None:
            sql += f" ORDER BY {self.order.column} {self.order.direction.value}"

        if self.limit_value is not None:
            sql += f" LIMIT {self.limit_value}"

        if self.offset_value is not None:
            sql += f" OFFSET {self.offset_value}"

        return sql


class InsertQuery:
    """Builder for INSERT statements.

    Column order in the rendered statement is the order values were added.
    """

    def __init__(self, table: str):
        self.table = table
        self.values: List[ValuePair] = []

    def add_value(self, column: str, value: Any) -> 'InsertQuery':
        self.values.append(ValuePair(column, SqlValue.coerce(value)))
        return self

    def set_values(self, values: Mapping[str, Any]) -> 'InsertQuery':
        """Add every column/value of a mapping, in the mapping's iteration order."""
        for column, value in values.items():
            self.add_value(column, value)
        return self

    def to_sql(self, dialect: Optional[DatabaseType] = None) -> str:
        columns = ", ".join(pair.column for pair in self.values)
        literals = ", ".join(pair.value.to_sql() for pair in self.values)
        return f"INSERT INTO {self.table} ({columns}) VALUES ({literals})"


class UpdateQuery(_PredicateMixin):
    """Builder for UPDATE statements."""

    def __init__(self, table: str):
        self.table = table
        self.set_clauses: List[ValuePair] = []
        self.where_clauses: List[WhereClause] = []

    def set(self, column: str, value: Any) -> 'UpdateQuery':
        self.set_clauses.append(ValuePair(column, SqlValue.coerce(value)))
        return self

    def set_multiple(self, values: Mapping[str, Any]) -> 'UpdateQuery':
        for column, value in values.items():
            self.set(column, value)
        return self

    def to_sql(self, dialect: Optional[DatabaseType] = None) -> str:
        assignments = ", ".join(
            f"{pair.column} = {pair.value.to_sql()}" for pair in self.set_clauses
        )
        return f"UPDATE {self.table} SET {assignments}" + self._render_where()


class DeleteQuery(_PredicateMixin):
    """Builder for DELETE statements."""

    def __init__(self, table: str):
        self.table = table
        self.where_clauses: List[WhereClause] = []

    def to_sql(self, dialect: Optional[DatabaseType] = None) -> str:
        return f"DELETE FROM {self.table}" + self._render_where()


def check_table_exists_sql(table_name: str, dialect: DatabaseType) -> str:
    """
    Generate SQL to check if a table exists in the current schema/database.

    Args:
        table_name: Name of the table to check
        dialect: Target database type

    Returns:
        SQL query returning a single boolean or count column
    """
    table_literal = SqlValue.text(table_name).to_sql()

    if dialect is DatabaseType.MYSQL:
        return f"""SELECT COUNT(*) > 0
FROM information_schema.tables
WHERE table_schema = DATABASE()
AND table_name = {table_literal}"""

    if dialect is DatabaseType.POSTGRESQL:
        return f"""SELECT EXISTS (
    SELECT FROM information_schema.tables
    WHERE table_schema = current_schema()
    AND table_name = {table_literal}
)"""

    return f"""SELECT COUNT(*)
FROM information_schema.tables
WHERE table_name = {table_literal}"""
