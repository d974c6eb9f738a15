"""
============================================
Comprehensive pytest suite for sql/values.py
============================================

Sections:
---------
1. Unit tests - Literal rendering per variant
2. Edge case tests - Escaping, ranges and invalid payloads

Available markers:
------------------
unit, edge_case

How to Execute:
---------------
All tests:          pytest tests/tests_sql/test_values.py -v
By category:        pytest tests/tests_sql/test_values.py -m unit
With coverage:      pytest tests/tests_sql/test_values.py --cov=sql.values
"""

from datetime import datetime, timezone

import pytest

from core.errors import QueryBuildError
from sql.values import SqlValue, SqlValueKind, to_sql_text

# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_null_renders_keyword():
    """NULL renders as the bare keyword."""
    assert SqlValue.null().to_sql() == 'NULL'
    assert SqlValue.coerce(None).to_sql() == 'NULL'


@pytest.mark.unit
def test_integer_renders_decimal():
    """Integers render in decimal, including negatives."""
    assert SqlValue.integer(42).to_sql() == '42'
    assert SqlValue.integer(-7).to_sql() == '-7'


@pytest.mark.unit
def test_float_renders_shortest_repr():
    """Floats render with Python's round-trip representation."""
    assert SqlValue.float_(1.5).to_sql() == '1.5'
    assert SqlValue.coerce(0.1).to_sql() == '0.1'


@pytest.mark.unit
def test_boolean_renders_keywords():
    """Booleans render TRUE / FALSE."""
    assert SqlValue.boolean(True).to_sql() == 'TRUE'
    assert SqlValue.boolean(False).to_sql() == 'FALSE'


@pytest.mark.unit
def test_text_is_single_quoted():
    """Text renders inside single quotes."""
    assert SqlValue.text('alice').to_sql() == "'alice'"


@pytest.mark.unit
def test_binary_renders_hex_literal():
    """Binary renders as a lowercase hex literal."""
    assert SqlValue.binary(b'\x01\xff').to_sql() == "x'01ff'"
    assert SqlValue.coerce(bytearray(b'\xab')).to_sql() == "x'ab'"


@pytest.mark.unit
def test_timestamp_renders_unix_seconds():
    """Timestamps render as integer Unix seconds."""
    assert SqlValue.timestamp(1700000000).to_sql() == '1700000000'


@pytest.mark.unit
def test_timestamp_from_naive_datetime_is_utc():
    """Naive datetimes are interpreted as UTC."""
    naive = datetime(2024, 1, 1, 0, 0, 0)
    aware = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
    assert SqlValue.timestamp(naive) == SqlValue.timestamp(aware)
    assert SqlValue.timestamp(aware).to_sql() == '1704067200'


@pytest.mark.unit
def test_coerce_picks_variant():
    """coerce() maps Python types to the matching variant."""
    assert SqlValue.coerce(True).kind is SqlValueKind.BOOLEAN
    assert SqlValue.coerce(1).kind is SqlValueKind.INTEGER
    assert SqlValue.coerce(1.0).kind is SqlValueKind.FLOAT
    assert SqlValue.coerce('x').kind is SqlValueKind.TEXT
    assert SqlValue.coerce(b'x').kind is SqlValueKind.BINARY
    assert SqlValue.coerce(datetime(2024, 1, 1)).kind is SqlValueKind.TIMESTAMP


@pytest.mark.unit
def test_coerce_passes_sql_value_through():
    """An existing SqlValue is returned unchanged."""
    value = SqlValue.text('x')
    assert SqlValue.coerce(value) is value


@pytest.mark.unit
def test_str_and_to_sql_text_match_to_sql():
    """str() and to_sql_text() render the same literal."""
    assert str(SqlValue.integer(3)) == '3'
    assert to_sql_text("it's") == "'it''s'"


# ===============
# 2. EDGE CASES
# ===============

@pytest.mark.edge_case
def test_text_doubles_single_quotes():
    """Every single quote is doubled."""
    assert SqlValue.text("O'Reilly").to_sql() == "'O''Reilly'"
    assert SqlValue.text("''").to_sql() == "''''''"


@pytest.mark.edge_case
def test_text_leaves_other_characters_alone():
    """Backslashes, double quotes and semicolons pass through verbatim."""
    assert SqlValue.text('a\\b"c;d').to_sql() == "'a\\b\"c;d'"


@pytest.mark.edge_case
def test_empty_text():
    """Empty string renders as two quotes."""
    assert SqlValue.text('').to_sql() == "''"


@pytest.mark.edge_case
def test_non_finite_floats_render_as_quoted_words():
    """NaN and infinities render as quoted strings."""
    assert SqlValue.float_(float('nan')).to_sql() == "'NaN'"
    assert SqlValue.float_(float('inf')).to_sql() == "'Infinity'"
    assert SqlValue.float_(float('-inf')).to_sql() == "'-Infinity'"


@pytest.mark.edge_case
def test_integer_range_limits():
    """Integers outside the 64-bit signed range are rejected."""
    assert SqlValue.integer(2 ** 63 - 1).to_sql() == str(2 ** 63 - 1)
    assert SqlValue.integer(-(2 ** 63)).to_sql() == str(-(2 ** 63))
    with pytest.raises(QueryBuildError):
        SqlValue.integer(2 ** 63)


@pytest.mark.edge_case
def test_bool_payload_rejected_for_integer():
    """A bool cannot masquerade as an INTEGER."""
    with pytest.raises(QueryBuildError):
        SqlValue(SqlValueKind.INTEGER, True)


@pytest.mark.edge_case
def test_coerce_rejects_unknown_type():
    """Objects without a literal form raise QueryBuildError."""
    with pytest.raises(QueryBuildError, match="Cannot convert"):
        SqlValue.coerce(object())


@pytest.mark.edge_case
def test_values_are_immutable_and_hashable():
    """SqlValue is frozen and usable as a dict key."""
    value = SqlValue.integer(1)
    with pytest.raises(AttributeError):
        value.value = 2
    assert {value: 'one'}[SqlValue.integer(1)] == 'one'
