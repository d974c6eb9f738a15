"""
=========================================
Command-line entry point for dig-toolkit.
=========================================

Thin CLI over the migration engine and the seed runner. Connection settings
come from the environment (.env), see core.config.

Usage:
    # Apply pending migrations
    python main.py migrate up

    # Roll back the last batch
    python main.py migrate down

    # Roll back every batch
    python main.py migrate reset

    # Show applied / pending migrations
    python main.py migrate status --dir database/migrations

    # Run seed files (optionally from a subdirectory of the seeders dir)
    python main.py seed run
    python main.py seed run demo

Exit codes:
    0   success
    1   error
    130 interrupted

Example:
    >>> from main import ToolkitRunner
    >>>
    >>> runner = ToolkitRunner()
    >>> runner.run_migrate('status')
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from core.config import Config, config
from core.errors import DigError
from core.logger import get_logger, setup_logging
from migrations.manager import MigrationManager
from migrations.seeder import Seeder
from utils.database import Database
from utils.database_utils import get_database_connection_info, wait_for_database

logger = get_logger(__name__)

MIGRATE_ACTIONS = ('up', 'down', 'reset', 'status')
WAIT_RETRIES = 5
WAIT_DELAY = 2


class ToolkitRunner:
    """
    Run migrate and seed commands against the configured database.

    A connection is opened for each command and closed when it finishes.

    Attributes:
        settings: Config holding database and migration settings
    """

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or config

    def _open_database(self) -> Database:
        """Wait until the database accepts connections, then connect."""
        self.settings.db.validate()
        conn_info = get_database_connection_info(self.settings.db)
        logger.info(
            f"Connecting to {conn_info['type']} at "
            f"{conn_info['host']}:{conn_info['port']}/{conn_info['database']}"
        )
        wait_for_database(self.settings.db, max_retries=WAIT_RETRIES, retry_delay=WAIT_DELAY)
        return Database.connect(self.settings.db)

    def run_migrate(self, action: str, directory: Optional[Path] = None) -> list:
        """
        Run one migrate action.

        Args:
            action: up, down, reset or status
            directory: Migrations directory (defaults to MIGRATIONS_DIR)

        Returns:
            Migrations applied/rolled back, or the status list
        """
        directory = Path(directory) if directory else self.settings.migrations.migrations_dir
        db = self._open_database()
        try:
            manager = MigrationManager(
                db.connection,
                db.db_type,
                table_name=self.settings.migrations.table_name,
                quote_aware_split=self.settings.migrations.quote_aware_split
            )
            migrations = manager.load_from_directory(directory)

            if action == 'up':
                return manager.migrate(migrations)
            if action == 'down':
                return manager.rollback(migrations)
            if action == 'reset':
                return manager.reset(migrations)
            if action == 'status':
                return manager.status(migrations)
            raise ValueError(f"Unknown migrate action: {action}")
        finally:
            db.disconnect()

    def run_seed(self, subdirectory: Optional[str] = None, directory: Optional[Path] = None) -> list:
        """
        Run every seed file of the seeders directory (or a subdirectory of it).

        Returns:
            Seed files executed
        """
        directory = Path(directory) if directory else self.settings.migrations.seeders_dir
        if subdirectory:
            directory = directory / subdirectory

        db = self._open_database()
        try:
            seeder = Seeder(db.connection, quote_aware_split=self.settings.migrations.quote_aware_split)
            return seeder.run(directory)
        finally:
            db.disconnect()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='dig-toolkit - SQL migrations and seeding',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py migrate up
  python main.py migrate down
  python main.py migrate status --dir database/migrations
  python main.py seed run demo
        """
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging (DEBUG level)'
    )

    commands = parser.add_subparsers(dest='command')

    migrate_parser = commands.add_parser('migrate', help='Apply or roll back migrations')
    migrate_parser.add_argument('action', choices=MIGRATE_ACTIONS, help='Migration action')
    migrate_parser.add_argument('--dir', type=Path, default=None, help='Migrations directory')

    seed_parser = commands.add_parser('seed', help='Run seed files')
    seed_parser.add_argument('action', choices=('run',), help='Seed action')
    seed_parser.add_argument('subdirectory', nargs='?', default=None, help='Seeders subdirectory')
    seed_parser.add_argument('--dir', type=Path, default=None, help='Seeders directory')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging(log_level='DEBUG')
    else:
        setup_logging(log_level=config.log_level)

    if args.command is None:
        parser.print_help()
        logger.warning("⚠️  No command specified. Use 'migrate' or 'seed'.")
        return 1

    try:
        runner = ToolkitRunner()
        if args.command == 'migrate':
            runner.run_migrate(args.action, args.dir)
        else:
            runner.run_seed(args.subdirectory, args.dir)
        return 0

    except DigError as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("⚠️  Operation interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"❌ Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
