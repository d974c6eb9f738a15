"""
========================
Database access package.
========================

Connection contract, drivers and the Database facade.

Modules:
    connection: Connection ABC, Row/ResultSet and the SQLAlchemy driver
    mock_connection: In-memory recording driver
    database_utils: Driver registry, engine creation and health checks
    database: Database facade with transactions and table builders
"""

__version__ = "0.1.0"
__all__ = [
    'Connection',
    'Database',
    'MockConnection',
    'ResultSet',
    'Row',
    'SQLAlchemyConnection',
    'available_drivers',
    'check_database_available',
    'create_connection',
    'create_sqlalchemy_engine',
    'get_connection_string',
    'get_driver',
    'register_driver',
    'wait_for_database'
]

from .connection import Connection, ResultSet, Row, SQLAlchemyConnection
from .database import Database
from .database_utils import (
    available_drivers,
    check_database_available,
    create_connection,
    create_sqlalchemy_engine,
    get_connection_string,
    get_driver,
    register_driver,
    wait_for_database,
)
from .mock_connection import MockConnection
