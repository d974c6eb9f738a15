"""
======================================================
Data Definition Language (DDL) for migration tracking.
======================================================

Generates the DDL for the table that records which migrations have been
applied. The logical schema is the same for every dialect; only the integer
keyword of the batch column differs (INT on MySQL, INTEGER elsewhere).

    id          VARCHAR(255) PRIMARY KEY
    name        VARCHAR(255) NOT NULL
    applied_at  BIGINT NOT NULL
    batch       INTEGER NOT NULL

Functions:
    create_migrations_table_sql: Generate CREATE TABLE for the tracking table

Example:
    >>> from core.config import DatabaseType
    >>> from sql.ddl import create_migrations_table_sql
    >>>
    >>> sql = create_migrations_table_sql('_dig_migrations', DatabaseType.MYSQL)
"""

from core.config import DatabaseType

BATCH_COLUMN_TYPES = {
    DatabaseType.POSTGRESQL: 'INTEGER',
    DatabaseType.MYSQL: 'INT',
    DatabaseType.MOCK: 'INTEGER',
}


def create_migrations_table_sql(table_name: str, dialect: DatabaseType) -> str:
    """
    Generate CREATE TABLE statement for the migration tracking table.

    Args:
        table_name: Tracking table name
        dialect: Target database type

    Returns:
        SQL CREATE TABLE statement
    """
    batch_type = BATCH_COLUMN_TYPES.get(dialect, 'INTEGER')

    return f"""CREATE TABLE {table_name} (
    id VARCHAR(255) PRIMARY KEY,
    name VARCHAR(255) NOT NULL,
    applied_at BIGINT NOT NULL,
    batch {batch_type} NOT NULL
)"""

