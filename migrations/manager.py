"""
=====================================
Migration engine with batch tracking.
=====================================

MigrationManager applies and reverts SqlMigration definitions against a
Connection and records applied migrations in a tracking table
(_dig_migrations by default):

    id          migration id (primary key)
    name        migration name
    applied_at  Unix seconds when the migration was applied
    batch       run number; every migration applied by one migrate() call
                shares the same batch

Each migration runs in its own transaction together with its tracking
record, so a failure leaves no partial effects for that migration. A
failure stops the run: earlier migrations in the same run stay applied,
later ones are not attempted.

rollback() reverts the most recent batch only, newest first. reset()
repeats rollback() until no batch remains.

Example:
    >>> from core.config import DatabaseType
    >>> from migrations.manager import MigrationManager
    >>>
    >>> manager = MigrationManager(connection, DatabaseType.POSTGRESQL)
    >>> migrations = manager.load_from_directory('database/migrations')
    >>> applied = manager.migrate(migrations)
    >>> manager.rollback(migrations)
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from core.config import DatabaseType
from core.errors import DigError, MigrationError, MigrationExecutionError
from migrations.loader import SqlMigration, load_migrations
from sql.ddl import create_migrations_table_sql
from sql.query_builder import DeleteQuery, InsertQuery, check_table_exists_sql
from sql.values import SqlValue

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = '_dig_migrations'


class MigrationStatus(Enum):
    PENDING = 'Pending'
    APPLIED = 'Applied'


@dataclass(frozen=True)
class MigrationRecord:
    """One row of the tracking table."""

    id: str
    name: str
    applied_at: int
    batch: int


@dataclass(frozen=True)
class MigrationState:
    """Status of a loaded migration, with its tracking record when applied."""

    migration: SqlMigration
    status: MigrationStatus
    record: Optional[MigrationRecord] = None


def _is_true(value) -> bool:
    """Interpret a driver's boolean/count result."""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 't', 'true')
    return bool(value)


class MigrationManager:
    """
    Apply, revert and report migrations.

    Attributes:
        connection: Connection used for every statement
        dialect: Database type (selects probe query and DDL keywords)
        table_name: Tracking table name
        quote_aware_split: Split scripts with the quote-aware splitter
    """

    def __init__(
        self,
        connection,
        dialect: DatabaseType,
        table_name: str = DEFAULT_TABLE_NAME,
        quote_aware_split: bool = False
    ):
        self.connection = connection
        self.dialect = dialect
        self.table_name = table_name
        self.quote_aware_split = quote_aware_split

    # ------------------------------------------------------------------
    # Tracking table
    # ------------------------------------------------------------------

    def ensure_migrations_table(self) -> None:
        """Create the tracking table if the existence probe says it is missing."""
        probe = self.connection.query(check_table_exists_sql(self.table_name, self.dialect))
        if _is_true(probe.scalar()):
            return

        self.connection.execute(create_migrations_table_sql(self.table_name, self.dialect))
        logger.info("Created migrations table")

    def get_current_batch(self) -> int:
        """Get the highest batch number, or 0 when nothing is applied."""
        result = self.connection.query(
            f"SELECT COALESCE(MAX(batch), 0) as max_batch FROM {self.table_name}"
        )
        value = result.scalar()
        return int(value) if value is not None else 0

    def is_applied(self, migration_id: str) -> bool:
        result = self.connection.query(
            f"SELECT COUNT(*) FROM {self.table_name} "
            f"WHERE id = {SqlValue.text(migration_id).to_sql()}"
        )
        value = result.scalar()
        return value is not None and int(value) > 0

    def get_applied_records(self) -> List[MigrationRecord]:
        """Get every tracking record, oldest batch first."""
        result = self.connection.query(
            f"SELECT id, name, applied_at, batch FROM {self.table_name} "
            f"ORDER BY batch ASC, applied_at ASC, id ASC"
        )
        return [
            MigrationRecord(
                id=str(row['id']),
                name=str(row['name']),
                applied_at=int(row['applied_at']),
                batch=int(row['batch'])
            )
            for row in result
        ]

    def _batch_ids(self, batch: int) -> List[str]:
        result = self.connection.query(
            f"SELECT id FROM {self.table_name} WHERE batch = {batch} "
            f"ORDER BY applied_at DESC, id DESC"
        )
        return [str(row[0]) for row in result]

    def _record_sql(self, migration: SqlMigration, batch: int) -> str:
        return (
            InsertQuery(self.table_name)
            .add_value('id', migration.id)
            .add_value('name', migration.name)
            .add_value('applied_at', int(time.time()))
            .add_value('batch', batch)
            .to_sql()
        )

    def _delete_record_sql(self, migration_id: str) -> str:
        return DeleteQuery(self.table_name).where('id', '=', migration_id).to_sql()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_from_directory(self, directory: Union[str, Path]) -> List[SqlMigration]:
        return load_migrations(directory)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run_in_transaction(
        self,
        migration: SqlMigration,
        statements: List[str],
        record_sql: str,
        action: str
    ) -> None:
        """Run a migration's statements and its tracking change atomically."""
        try:
            self.connection.begin_transaction()
        except DigError as e:
            logger.error(f"Migration failed: {migration.name}: {e}")
            raise MigrationExecutionError(
                f"Failed to {action} migration {migration.id} ({migration.name}): {e}",
                migration_id=migration.id
            ) from e

        try:
            for statement in statements:
                self.connection.execute(statement)
            self.connection.execute(record_sql)
            self.connection.commit()
        except DigError as e:
            try:
                self.connection.rollback()
            except DigError as rollback_error:
                logger.error(f"Rollback after failed migration {migration.id} also failed: {rollback_error}")
            logger.error(f"Migration failed: {migration.name}: {e}")
            raise MigrationExecutionError(
                f"Failed to {action} migration {migration.id} ({migration.name}): {e}",
                migration_id=migration.id
            ) from e

    def migrate(self, migrations: Sequence[SqlMigration]) -> List[SqlMigration]:
        """
        Apply every pending migration in ascending id order as one batch.

        Args:
            migrations: Loaded migration definitions

        Returns:
            Migrations applied by this call

        Raises:
            MigrationExecutionError: When a migration fails; it is rolled
                back and no later migration is attempted
        """
        self.ensure_migrations_table()
        batch = self.get_current_batch() + 1

        applied: List[SqlMigration] = []
        for migration in sorted(migrations, key=lambda m: m.id):
            if self.is_applied(migration.id):
                continue

            logger.info(f"Migrating: {migration.name}")
            self._run_in_transaction(
                migration,
                migration.up_statements(self.quote_aware_split),
                self._record_sql(migration, batch),
                action='apply'
            )
            logger.info(f"Migrated: {migration.name}")
            applied.append(migration)

        if not applied:
            logger.info("Nothing to migrate.")
        else:
            logger.info(f"Migrated {len(applied)} migration(s).")
        return applied

    def rollback(self, migrations: Sequence[SqlMigration]) -> List[SqlMigration]:
        """
        Revert the most recent batch, newest migration first.

        Tracked ids with no loaded definition are logged and skipped.

        Returns:
            Migrations rolled back by this call

        Raises:
            MigrationExecutionError: When a backward script fails
        """
        self.ensure_migrations_table()
        batch = self.get_current_batch()
        if batch == 0:
            logger.info("Nothing to rollback.")
            return []

        by_id: Dict[str, SqlMigration] = {m.id: m for m in migrations}
        rolled_back: List[SqlMigration] = []

        for migration_id in self._batch_ids(batch):
            migration = by_id.get(migration_id)
            if migration is None:
                logger.warning(f"Warning: Migration {migration_id} not found in migration list")
                continue

            logger.info(f"Rolling back: {migration.name}")
            self._run_in_transaction(
                migration,
                migration.down_statements(self.quote_aware_split),
                self._delete_record_sql(migration.id),
                action='roll back'
            )
            logger.info(f"Rolled back: {migration.name}")
            rolled_back.append(migration)

        logger.info(f"Rolled back {len(rolled_back)} migration(s).")
        return rolled_back

    def reset(self, migrations: Sequence[SqlMigration]) -> List[SqlMigration]:
        """
        Roll back every batch.

        Returns:
            All migrations rolled back, in rollback order

        Raises:
            MigrationError: If a batch cannot be emptied because its
                migrations are missing from the loaded definitions
        """
        self.ensure_migrations_table()
        rolled_back: List[SqlMigration] = []

        while True:
            batch = self.get_current_batch()
            if batch == 0:
                break
            reverted = self.rollback(migrations)
            if not reverted:
                raise MigrationError(
                    f"Cannot reset: batch {batch} only contains migrations that are "
                    f"not in the loaded migration list",
                    details={'batch': batch}
                )
            rolled_back.extend(reverted)

        if not rolled_back:
            logger.info("Nothing to rollback.")
        return rolled_back

    def status(self, migrations: Sequence[SqlMigration]) -> List[MigrationState]:
        """
        Report each loaded migration as applied or pending.

        Logs a Migration / Status table and returns the states in id order.
        """
        self.ensure_migrations_table()
        records = {record.id: record for record in self.get_applied_records()}

        states = []
        for migration in sorted(migrations, key=lambda m: m.id):
            record = records.get(migration.id)
            status = MigrationStatus.APPLIED if record is not None else MigrationStatus.PENDING
            states.append(MigrationState(migration, status, record))

        width = max([len('Migration')] + [len(f"{s.migration.id}_{s.migration.name}") for s in states])
        logger.info(f"{'Migration':<{width}} | Status")
        logger.info(f"{'-' * width}-+--------")
        for state in states:
            label = f"{state.migration.id}_{state.migration.name}"
            logger.info(f"{label:<{width}} | {state.status.value}")

        return states
