"""
===================================
Migration file loading and parsing.
===================================

A migration is one SQL file named <id>_<name>.sql holding a forward and a
backward script, separated by marker lines:

    -- up
    CREATE TABLE users (id INTEGER PRIMARY KEY, name VARCHAR(100));

    -- down
    DROP TABLE users;

Marker lines match after trimming spaces, tabs and carriage returns. Text
before the first marker belongs to neither script. Scripts are split into
statements on ';' before execution.

Example:
    >>> from migrations.loader import load_migrations
    >>>
    >>> migrations = load_migrations('database/migrations')
    >>> [m.id for m in migrations]
    ['20251122', '20251123']
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from core.errors import MigrationLoadError

logger = logging.getLogger(__name__)

UP_MARKER = '-- up'
DOWN_MARKER = '-- down'
MIGRATION_SUFFIX = '.sql'


@dataclass(frozen=True)
class SqlMigration:
    """A loaded migration definition.

    Attributes:
        id: Ordering key taken from the file name (text before the first '_')
        name: Human-readable name (rest of the file name, '_' replaced by spaces)
        up_sql: Forward script
        down_sql: Backward script
        path: Source file, if loaded from disk
    """

    id: str
    name: str
    up_sql: str
    down_sql: str
    path: Optional[Path] = None

    def up_statements(self, quote_aware: bool = False) -> List[str]:
        return split_sql_statements(self.up_sql, quote_aware=quote_aware)

    def down_statements(self, quote_aware: bool = False) -> List[str]:
        return split_sql_statements(self.down_sql, quote_aware=quote_aware)


def parse_migration_filename(filename: str) -> Tuple[str, str]:
    """
    Derive the migration id and name from a file name.

    Args:
        filename: File name such as 20251122_create_users_table.sql

    Returns:
        Tuple of (id, name), e.g. ('20251122', 'create users table').
        Without an underscore, id and name are both the stem.
    """
    stem = filename[:-len(MIGRATION_SUFFIX)] if filename.endswith(MIGRATION_SUFFIX) else filename

    migration_id, sep, rest = stem.partition('_')
    if not sep:
        return stem, stem
    return migration_id, rest.replace('_', ' ')


def parse_sql_sections(content: str) -> Tuple[str, str]:
    """
    Split file content into its forward and backward scripts.

    Args:
        content: Full migration file text

    Returns:
        Tuple of (up_sql, down_sql); every kept line ends with '\\n'
    """
    up_lines: List[str] = []
    down_lines: List[str] = []
    current: Optional[List[str]] = None

    for line in content.split('\n'):
        marker = line.strip(' \t\r')
        if marker == UP_MARKER:
            current = up_lines
        elif marker == DOWN_MARKER:
            current = down_lines
        elif current is not None:
            current.append(line + '\n')

    return ''.join(up_lines), ''.join(down_lines)


def _split_naive(sql: str) -> List[str]:
    return [piece.strip(' \t\n\r') for piece in sql.split(';')]


def _split_quote_aware(sql: str) -> List[str]:
    """Split on ';' outside quoted strings; '--' comments are dropped."""
    pieces: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    i = 0
    length = len(sql)

    while i < length:
        char = sql[i]
        if quote is not None:
            current.append(char)
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
            current.append(char)
        elif char == '-' and sql.startswith('--', i):
            newline = sql.find('\n', i)
            if newline == -1:
                break
            i = newline
            continue
        elif char == ';':
            pieces.append(''.join(current))
            current = []
        else:
            current.append(char)
        i += 1

    pieces.append(''.join(current))
    return [piece.strip(' \t\n\r') for piece in pieces]


def split_sql_statements(sql: str, quote_aware: bool = False) -> List[str]:
    """
    Split a script into individual statements.

    The default splitter cuts on every ';', including ones inside string
    literals. quote_aware=True ignores ';' inside single- or double-quoted
    strings and skips '--' line comments.

    Args:
        sql: Script text
        quote_aware: Use the quote-aware splitter

    Returns:
        Trimmed, non-empty statements in order. A trailing statement without
        a terminating ';' is kept.
    """
    pieces = _split_quote_aware(sql) if quote_aware else _split_naive(sql)
    return [piece for piece in pieces if piece]


def load_migration_file(path: Path) -> SqlMigration:
    """
    Load one migration file.

    Raises:
        MigrationLoadError: If the file cannot be read or is not valid UTF-8
    """
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise MigrationLoadError(
            f"Failed to read migration file {path}: {e}",
            details={'path': str(path)}
        ) from e

    migration_id, name = parse_migration_filename(path.name)
    up_sql, down_sql = parse_sql_sections(content)
    return SqlMigration(id=migration_id, name=name, up_sql=up_sql, down_sql=down_sql, path=path)


def load_migrations(directory: Union[str, Path]) -> List[SqlMigration]:
    """
    Load every migration file of a directory, sorted by id.

    Only regular files ending in .sql directly inside the directory are
    read; subdirectories are ignored.

    Args:
        directory: Migrations directory

    Returns:
        Migrations in ascending id order

    Raises:
        MigrationLoadError: If the directory is missing, a file cannot be
            read, or two files share an id
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationLoadError(
            f"Migrations directory not found: {directory}",
            details={'path': str(directory)}
        )

    migrations: List[SqlMigration] = []
    seen = {}
    for path in sorted(directory.iterdir()):
        if not path.is_file() or not path.name.endswith(MIGRATION_SUFFIX):
            continue

        migration = load_migration_file(path)
        if migration.id in seen:
            raise MigrationLoadError(
                f"Duplicate migration id '{migration.id}': "
                f"{seen[migration.id].name} and {path.name}",
                details={'id': migration.id}
            )
        seen[migration.id] = path
        migrations.append(migration)
        logger.debug(f"Loaded migration {migration.id}: {migration.name}")

    migrations.sort(key=lambda m: m.id)
    logger.info(f"Loaded {len(migrations)} migration(s) from {directory}")
    return migrations
