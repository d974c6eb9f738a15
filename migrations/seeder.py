"""
=================
Seed file runner.
=================

Seed files are plain SQL files (no up/down markers) that populate a
database with sample or reference data. Files run in file-name order;
each statement runs on its own, outside any explicit transaction.
Leading '--' comment lines are removed from each statement; a statement
made only of comments is skipped.

Example:
    >>> from migrations.seeder import Seeder
    >>>
    >>> seeded = Seeder(connection).run('database/seeders')
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from core.errors import DatabaseError, MigrationLoadError, QueryExecutionError
from migrations.loader import split_sql_statements

logger = logging.getLogger(__name__)

SEED_SUFFIX = '.sql'


def strip_leading_comments(statement: str) -> str:
    """Drop the '--' comment lines that open a statement."""
    lines = statement.split('\n')
    while lines and (not lines[0].strip() or lines[0].lstrip().startswith('--')):
        lines.pop(0)
    return '\n'.join(lines).strip()


@dataclass(frozen=True)
class SeedFile:
    name: str
    content: str
    path: Optional[Path] = None


def load_seed_files(directory: Union[str, Path]) -> List[SeedFile]:
    """
    Load every .sql file directly inside a directory, sorted by file name.

    Raises:
        MigrationLoadError: If the directory is missing or a file cannot be read
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationLoadError(
            f"Seeders directory not found: {directory}",
            details={'path': str(directory)}
        )

    seeds = []
    for path in sorted(directory.iterdir(), key=lambda p: p.name):
        if not path.is_file() or not path.name.endswith(SEED_SUFFIX):
            continue
        try:
            content = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise MigrationLoadError(
                f"Failed to read seed file {path}: {e}",
                details={'path': str(path)}
            ) from e
        seeds.append(SeedFile(name=path.name, content=content, path=path))

    return seeds


class Seeder:
    """
    Execute seed files against a connection.

    Attributes:
        connection: Connection used for every statement
        quote_aware_split: Split files with the quote-aware splitter
    """

    def __init__(self, connection, quote_aware_split: bool = False):
        self.connection = connection
        self.quote_aware_split = quote_aware_split

    def run_file(self, seed: SeedFile) -> None:
        """
        Execute every statement of one seed file.

        Raises:
            QueryExecutionError: Naming the file, when a statement fails
        """
        logger.info(f"Seeding: {seed.name}")
        for raw in split_sql_statements(seed.content, quote_aware=self.quote_aware_split):
            statement = strip_leading_comments(raw)
            if not statement:
                logger.debug(f"Skipping comment-only statement in {seed.name}: {raw}")
                continue
            try:
                self.connection.execute(statement)
            except DatabaseError as e:
                logger.error(f"Seeding failed: {seed.name}: {e}")
                raise QueryExecutionError(
                    f"Seed file {seed.name} failed: {e}",
                    sql=statement,
                    database_type=e.database_type,
                    details={'file': seed.name}
                ) from e
        logger.info(f"Seeded: {seed.name}")

    def run(self, directory: Union[str, Path]) -> List[SeedFile]:
        """
        Run every seed file of a directory in file-name order.

        Returns:
            Seed files executed
        """
        seeds = load_seed_files(directory)
        if not seeds:
            logger.info("No seed files found.")
            return []

        for seed in seeds:
            self.run_file(seed)

        logger.info(f"Seeded {len(seeds)} file(s).")
        return seeds
