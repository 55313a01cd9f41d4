# tests/fakes.py

import copy
import uuid
from types import SimpleNamespace


class FakeQuery:
    """
    Chainable stand-in for a PostgREST request builder.

    Supports the subset the store uses: select / insert / update / delete with
    eq / in_ filters and order. Rows are deep-copied on the way in and out so
    tests can't accidentally share state with the "database".
    """

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = 'select'
        self.payload = None
        self.filters = []
        self.order_by = None

    def select(self, columns='*', **kwargs):
        self.action = 'select'
        return self

    def insert(self, payload):
        self.action = 'insert'
        self.payload = payload
        return self

    def update(self, payload):
        self.action = 'update'
        self.payload = payload
        return self

    def delete(self):
        self.action = 'delete'
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.action))
        if self.db.fail_tables and self.table in self.db.fail_tables:
            raise RuntimeError(f'simulated failure on {self.table}')
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == 'insert':
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault('id', str(uuid.uuid4()))
                row.setdefault('created_at', self.db.next_timestamp())
                rows.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created)

        matched = [r for r in rows if self._matches(r)]

        if self.action == 'update':
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.action == 'delete':
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(matched))

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        return SimpleNamespace(data=copy.deepcopy(matched))


class FakeSupabase:
    """In-memory Supabase client: ``client.table(name)`` returns a FakeQuery."""

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail_tables = set()
        self._tick = 0

    def table(self, name):
        return FakeQuery(self, name)

    def next_timestamp(self):
        self._tick += 1
        minutes, seconds = divmod(self._tick, 60)
        hours, minutes = divmod(minutes, 60)
        return f'2024-01-01T{hours:02d}:{minutes:02d}:{seconds:02d}+00:00'

    def rows(self, table):
        return self.tables.get(table, [])
