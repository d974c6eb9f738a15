"""
Shared fixtures and fakes for migration engine tests.

Key fixtures:
- tracking_connection: MockConnection that keeps the migration tracking table
  in memory and honors transaction rollback.
- migrations_dir: tmp directory factory for <id>_<name>.sql files.
"""

import re

import pytest

from core.errors import QueryExecutionError
from utils.connection import ResultSet
from utils.mock_connection import MockConnection

TABLE = '_dig_migrations'

_INSERT_RE = re.compile(
    rf"^INSERT INTO {TABLE} \(id, name, applied_at, batch\) "
    r"VALUES \('((?:[^']|'')*)', '((?:[^']|'')*)', (\d+), (\d+)\)$"
)
_DELETE_RE = re.compile(rf"^DELETE FROM {TABLE} WHERE id = '((?:[^']|'')*)'$")
_COUNT_RE = re.compile(rf"^SELECT COUNT\(\*\) FROM {TABLE} WHERE id = '((?:[^']|'')*)'$")
_BATCH_IDS_RE = re.compile(rf"^SELECT id FROM {TABLE} WHERE batch = (\d+) ORDER BY applied_at DESC, id DESC$")


def _unquote(text):
    return text.replace("''", "'")


class FakeTrackingConnection(MockConnection):
    """
    MockConnection that understands the tracking-table statements.

    Attributes:
        table_exists: Whether CREATE TABLE has run
        records: Tracking rows as dicts, in insertion order
        statements: Non-tracking statements that were executed and kept
        fail_on: Substrings that make execute() fail
    """

    def __init__(self, table_exists=False):
        super().__init__()
        self.table_exists = table_exists
        self.records = []
        self.statements = []
        self.fail_on = set()
        self._snapshot = None

    # ---- transactions restore state on rollback

    def begin_transaction(self):
        super().begin_transaction()
        self._snapshot = (list(self.records), list(self.statements))

    def commit(self):
        super().commit()
        self._snapshot = None

    def rollback(self):
        super().rollback()
        self.records, self.statements = self._snapshot
        self._snapshot = None

    # ---- statements

    def execute(self, sql):
        super().execute(sql)
        if any(fragment in sql for fragment in self.fail_on):
            raise QueryExecutionError(f"Simulated failure: {sql}", sql=sql, database_type='mock')

        if sql.startswith(f"CREATE TABLE {TABLE}"):
            self.table_exists = True
            return

        match = _INSERT_RE.match(sql)
        if match:
            self.records.append({
                'id': _unquote(match.group(1)),
                'name': _unquote(match.group(2)),
                'applied_at': int(match.group(3)),
                'batch': int(match.group(4)),
            })
            return

        match = _DELETE_RE.match(sql)
        if match:
            migration_id = _unquote(match.group(1))
            self.records = [r for r in self.records if r['id'] != migration_id]
            return

        self.statements.append(sql)

    def query(self, sql):
        super().query(sql)

        if 'information_schema.tables' in sql:
            return ResultSet(['exists'], [(self.table_exists,)])

        if sql.startswith('SELECT COALESCE(MAX(batch), 0)'):
            batch = max((r['batch'] for r in self.records), default=0)
            return ResultSet(['max_batch'], [(batch,)])

        match = _COUNT_RE.match(sql)
        if match:
            migration_id = _unquote(match.group(1))
            return ResultSet(['count'], [(sum(1 for r in self.records if r['id'] == migration_id),)])

        match = _BATCH_IDS_RE.match(sql)
        if match:
            batch = int(match.group(1))
            rows = sorted(
                (r for r in self.records if r['batch'] == batch),
                key=lambda r: (r['applied_at'], r['id']),
                reverse=True
            )
            return ResultSet(['id'], [(r['id'],) for r in rows])

        if sql.startswith(f"SELECT id, name, applied_at, batch FROM {TABLE}"):
            rows = sorted(self.records, key=lambda r: (r['batch'], r['applied_at'], r['id']))
            return ResultSet(
                ['id', 'name', 'applied_at', 'batch'],
                [(r['id'], r['name'], r['applied_at'], r['batch']) for r in rows]
            )

        return ResultSet([], [])

    def applied_ids(self):
        return [r['id'] for r in self.records]


@pytest.fixture
def tracking_connection():
    """Provide a connected FakeTrackingConnection."""
    conn = FakeTrackingConnection()
    conn.connect()
    yield conn
    conn.disconnect()


@pytest.fixture
def migrations_dir(tmp_path):
    """Return a function that writes migration files into a tmp directory."""
    directory = tmp_path / 'migrations'
    directory.mkdir()

    def write(filename, up_sql, down_sql=''):
        content = f"-- up\n{up_sql}\n\n-- down\n{down_sql}\n"
        (directory / filename).write_text(content, encoding='utf-8')
        return directory

    write.path = directory
    return write
