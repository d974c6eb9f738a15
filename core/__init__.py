"""
============================================
Core infrastructure package for the toolkit.
============================================

Centralized configuration, logging and the shared exception hierarchy used
by the statement builders, the connection layer and the migration engine.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities
    errors: Exception hierarchy

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Connecting to {config.db_host}")
"""

__version__ = "0.1.0"
__all__ = [
    'get_logger', 'setup_logging', 'config', 'Config', 'DatabaseConfig',
    'DatabaseType', 'MigrationConfig', 'DigError'
]

from core.config import Config, DatabaseConfig, DatabaseType, MigrationConfig, config
from core.errors import DigError
from core.logger import get_logger, setup_logging
