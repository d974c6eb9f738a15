"""
=============================
Schema migration and seeding.
=============================

Modules:
    loader: Migration file parsing and statement splitting
    manager: MigrationManager (migrate, rollback, reset, status)
    seeder: Seed file runner
"""

__version__ = "0.1.0"
__all__ = [
    'MigrationManager',
    'MigrationRecord',
    'MigrationState',
    'MigrationStatus',
    'SeedFile',
    'Seeder',
    'SqlMigration',
    'load_migrations',
    'load_seed_files',
    'parse_migration_filename',
    'parse_sql_sections',
    'split_sql_statements'
]

from .loader import (
    SqlMigration,
    load_migrations,
    parse_migration_filename,
    parse_sql_sections,
    split_sql_statements,
)
from .manager import MigrationManager, MigrationRecord, MigrationState, MigrationStatus
from .seeder import SeedFile, Seeder, load_seed_files
