"""
========================
SQL literal value model.
========================

SqlValue is a closed set of scalar variants (null, integer, float, text,
boolean, binary, timestamp) with a single rule for rendering each variant as
SQL literal text. Rendering a TEXT value is the only place quote escaping
happens in the toolkit: every single quote is doubled and nothing else is
altered. No parameter binding is used anywhere, so callers rely on this
escaping for injection safety of values (column names and operators are
interpolated verbatim).

Example:
    >>> from sql.values import SqlValue
    >>>
    >>> SqlValue.text("O'Reilly").to_sql()
    "'O''Reilly'"
    >>> SqlValue.coerce(b'\\x01\\xff').to_sql()
    "x'01ff'"
    >>> SqlValue.coerce(None).to_sql()
    'NULL'
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from core.errors import QueryBuildError

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class SqlValueKind(Enum):
    """Active variant of a SqlValue."""

    NULL = 'null'
    INTEGER = 'integer'
    FLOAT = 'float'
    TEXT = 'text'
    BOOLEAN = 'boolean'
    BINARY = 'binary'
    TIMESTAMP = 'timestamp'


def _check_int64(value: int, kind: SqlValueKind) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise QueryBuildError(
            f"{kind.value} value {value} is outside the 64-bit signed range"
        )
    return value


@dataclass(frozen=True)
class SqlValue:
    """A single SQL scalar value.

    Build instances with the named constructors or SqlValue.coerce(); the
    (kind, value) pair is validated on construction so to_sql() never fails.

    Attributes:
        kind: Active variant
        value: Python payload (None, int, float, str, bool or bytes)
    """

    kind: SqlValueKind
    value: Any = None

    def __post_init__(self):
        expected = {
            SqlValueKind.NULL: type(None),
            SqlValueKind.INTEGER: int,
            SqlValueKind.FLOAT: float,
            SqlValueKind.TEXT: str,
            SqlValueKind.BOOLEAN: bool,
            SqlValueKind.BINARY: bytes,
            SqlValueKind.TIMESTAMP: int,
        }[self.kind]

        # bool is a subclass of int; only BOOLEAN may carry one
        if not isinstance(self.value, expected) or (
            isinstance(self.value, bool) and self.kind is not SqlValueKind.BOOLEAN
        ):
            raise QueryBuildError(
                f"Invalid payload {self.value!r} for {self.kind.value} value"
            )
        if self.kind in (SqlValueKind.INTEGER, SqlValueKind.TIMESTAMP):
            _check_int64(self.value, self.kind)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def null(cls) -> 'SqlValue':
        return cls(SqlValueKind.NULL)

    @classmethod
    def integer(cls, value: int) -> 'SqlValue':
        return cls(SqlValueKind.INTEGER, value)

    @classmethod
    def float_(cls, value: float) -> 'SqlValue':
        return cls(SqlValueKind.FLOAT, float(value))

    @classmethod
    def text(cls, value: str) -> 'SqlValue':
        return cls(SqlValueKind.TEXT, value)

    @classmethod
    def boolean(cls, value: bool) -> 'SqlValue':
        return cls(SqlValueKind.BOOLEAN, value)

    @classmethod
    def binary(cls, value: Union[bytes, bytearray, memoryview]) -> 'SqlValue':
        return cls(SqlValueKind.BINARY, bytes(value))

    @classmethod
    def timestamp(cls, value: Union[int, datetime]) -> 'SqlValue':
        """Build a TIMESTAMP value from Unix seconds or a datetime.

        Naive datetimes are treated as UTC.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            value = int(value.timestamp())
        return cls(SqlValueKind.TIMESTAMP, value)

    @classmethod
    def coerce(cls, value: Any) -> 'SqlValue':
        """Convert a plain Python value into a SqlValue.

        Args:
            value: None, bool, int, float, str, bytes-like, datetime or SqlValue

        Returns:
            Matching SqlValue

        Raises:
            QueryBuildError: If the value has no SQL literal form
        """
        if isinstance(value, SqlValue):
            return value
        if value is None:
            return cls.null()
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.float_(value)
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.binary(value)
        if isinstance(value, datetime):
            return cls.timestamp(value)
        raise QueryBuildError(
            f"Cannot convert {type(value).__name__} value {value!r} to a SQL literal"
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_sql(self) -> str:
        """Render this value as SQL literal text."""
        kind = self.kind

        if kind is SqlValueKind.NULL:
            return 'NULL'
        if kind in (SqlValueKind.INTEGER, SqlValueKind.TIMESTAMP):
            return str(self.value)
        if kind is SqlValueKind.BOOLEAN:
            return 'TRUE' if self.value else 'FALSE'
        if kind is SqlValueKind.FLOAT:
            return _float_literal(self.value)
        if kind is SqlValueKind.TEXT:
            return "'" + self.value.replace("'", "''") + "'"
        # BINARY
        return "x'" + self.value.hex() + "'"

    def __str__(self) -> str:
        return self.to_sql()


def _float_literal(value: float) -> str:
    if math.isnan(value):
        return "'NaN'"
    if math.isinf(value):
        return "'Infinity'" if value > 0 else "'-Infinity'"
    return repr(value)


def to_sql_text(value: Any) -> str:
    """Render any value accepted by SqlValue.coerce() as SQL literal text."""
    return SqlValue.coerce(value).to_sql()
