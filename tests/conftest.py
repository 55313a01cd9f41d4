# tests/conftest.py

import pytest

from app import create_app
from models import Task
from store import TaskStore

from .fakes import FakeSupabase

USER_ID = 'user-1'
OTHER_USER_ID = 'user-2'


@pytest.fixture()
def db():
    return FakeSupabase()


@pytest.fixture()
def store(db):
    return TaskStore(db)


@pytest.fixture()
def app(store):
    return create_app('testing', store=store)


def login(c, user_id=USER_ID):
    """Sign a session cookie for ``user_id`` at the current (possibly frozen) time.

    Session cookies carry their signing time, so tests that freeze the clock
    must log in again inside the frozen block.
    """
    with c.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['username'] = 'tester'
    return c


@pytest.fixture()
def client(app):
    """Test client with a logged-in session for USER_ID."""
    return login(app.test_client())


@pytest.fixture()
def anon_client(app):
    return app.test_client()


def make_daily(**kwargs):
    """A daily task with sensible defaults for engine tests."""
    fields = {'id': 'task-1', 'user_id': USER_ID, 'title': 'Stretch', 'is_daily': True}
    fields.update(kwargs)
    return Task(**fields)


def seed_task(db, **row):
    """Insert a task row directly into the fake database and return it."""
    base = {
        'user_id': USER_ID,
        'title': 'Task',
        'description': None,
        'is_daily': False,
        'priority': 'NI',
        'order_index': 0,
        'completed_at': None,
        'completion': {'completedCount': 0, 'total': 0},
        'daily_meta': None,
    }
    base.update(row)
    return db.table('tasks').insert(base).execute().data[0]
