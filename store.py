"""
Supabase-backed record store.

Every query is scoped to the owning ``user_id``; a row that exists but belongs
to someone else is reported exactly like a missing one.
"""
import logging
from datetime import datetime, timezone

from supabase import create_client

from models import Completion, Settings, Subtask, Task, TaskLink, DEFAULT_SORT_MODE

logger = logging.getLogger(__name__)

TASK_WRITE_FIELDS = (
    'title', 'description', 'is_daily', 'priority', 'order_index',
    'completed_at', 'completion', 'daily_meta',
)


class StoreError(Exception):
    """A read or write against the database failed."""


class NotFoundError(StoreError):
    """The requested row does not exist for this user."""


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


class TaskStore:
    def __init__(self, client):
        self.client = client

    @classmethod
    def from_config(cls, url, key):
        if not url or not key:
            raise ValueError('Please set SUPABASE_URL and SUPABASE_ANON_KEY environment variables')
        return cls(create_client(url, key))

    def _execute(self, query, action):
        try:
            res = query.execute()
        except Exception as e:
            logger.error('Supabase %s failed: %s', action, e)
            raise StoreError(f'{action} failed') from e
        return res.data or []

    def _table(self, name):
        return self.client.table(name)

    # -------------------------
    # Tasks
    # -------------------------
    def _attach_children(self, user_id, rows):
        if not rows:
            return []
        ids = [r['id'] for r in rows]
        subtasks = self._execute(
            self._table('subtasks').select('*').eq('user_id', user_id).in_('task_id', ids).order('created_at'),
            'load subtasks')
        links = self._execute(
            self._table('task_links').select('*').eq('user_id', user_id).in_('task_id', ids).order('created_at'),
            'load links')
        by_task = {tid: ([], []) for tid in ids}
        for st in subtasks:
            by_task.setdefault(st['task_id'], ([], []))[0].append(st)
        for ln in links:
            by_task.setdefault(ln['task_id'], ([], []))[1].append(ln)
        tasks = []
        for r in rows:
            sts, lns = by_task.get(r['id'], ([], []))
            tasks.append(Task.from_row({**r, 'subtasks': sts, 'links': lns}))
        return tasks

    def list_tasks(self, user_id, is_daily=None):
        query = self._table('tasks').select('*').eq('user_id', user_id)
        if is_daily is not None:
            query = query.eq('is_daily', is_daily)
        rows = self._execute(query.order('order_index'), 'list tasks')
        return self._attach_children(user_id, rows)

    def get_task(self, user_id, task_id):
        rows = self._execute(
            self._table('tasks').select('*').eq('id', task_id).eq('user_id', user_id),
            'load task')
        if not rows:
            raise NotFoundError('Task not found')
        return self._attach_children(user_id, rows[:1])[0]

    def create_task(self, user_id, payload):
        row = {k: payload[k] for k in TASK_WRITE_FIELDS if k in payload}
        row['user_id'] = user_id
        row.setdefault('completion', Completion().to_row())
        rows = self._execute(self._table('tasks').insert(row), 'create task')
        if not rows:
            raise StoreError('create task returned no row')
        return Task.from_row(rows[0])

    def update_task(self, user_id, task_id, payload):
        updates = {k: payload[k] for k in TASK_WRITE_FIELDS if k in payload}
        if not updates:
            return self.get_task(user_id, task_id)
        updates['updated_at'] = _now_iso()
        rows = self._execute(
            self._table('tasks').update(updates).eq('id', task_id).eq('user_id', user_id),
            'update task')
        if not rows:
            raise NotFoundError('Task not found')
        return self.get_task(user_id, task_id)

    def save_task(self, task):
        """Persist the fields the streak engine produces."""
        return self.update_task(task.user_id, task.id, {
            'completed_at': task.completed_at,
            'completion': task.completion.to_row(),
            'daily_meta': task.daily_meta.to_row() if task.daily_meta else None,
        })

    def delete_task(self, user_id, task_id):
        owned = self._execute(
            self._table('tasks').select('id').eq('id', task_id).eq('user_id', user_id),
            'load task')
        if not owned:
            raise NotFoundError('Task not found')
        self._execute(self._table('subtasks').delete().eq('task_id', task_id).eq('user_id', user_id),
                      'delete subtasks')
        self._execute(self._table('task_links').delete().eq('task_id', task_id).eq('user_id', user_id),
                      'delete links')
        self._execute(self._table('tasks').delete().eq('id', task_id).eq('user_id', user_id),
                      'delete task')

    def reorder(self, user_id, tasks):
        for t in tasks:
            self._execute(
                self._table('tasks').update({'order_index': t.order_index})
                .eq('id', t.id).eq('user_id', user_id),
                'reorder tasks')

    # -------------------------
    # Subtasks
    # -------------------------
    def _require_task(self, user_id, task_id):
        rows = self._execute(
            self._table('tasks').select('id').eq('id', task_id).eq('user_id', user_id),
            'load task')
        if not rows:
            raise NotFoundError('Task not found')

    def _refresh_completion(self, user_id, task_id):
        rows = self._execute(
            self._table('subtasks').select('*').eq('task_id', task_id).eq('user_id', user_id),
            'count subtasks')
        completion = Completion.from_subtasks([Subtask.from_row(r) for r in rows])
        self._execute(
            self._table('tasks').update({'completion': completion.to_row()})
            .eq('id', task_id).eq('user_id', user_id),
            'update completion')
        return completion

    def create_subtask(self, user_id, payload):
        self._require_task(user_id, payload['task_id'])
        rows = self._execute(
            self._table('subtasks').insert({
                'task_id': payload['task_id'],
                'title': payload['title'],
                'done': False,
                'user_id': user_id,
            }),
            'create subtask')
        if not rows:
            raise StoreError('create subtask returned no row')
        self._refresh_completion(user_id, payload['task_id'])
        return Subtask.from_row(rows[0])

    def update_subtask(self, user_id, subtask_id, payload):
        rows = self._execute(
            self._table('subtasks').update(payload).eq('id', subtask_id).eq('user_id', user_id),
            'update subtask')
        if not rows:
            raise NotFoundError('Subtask not found')
        subtask = Subtask.from_row(rows[0])
        self._refresh_completion(user_id, subtask.task_id)
        return subtask

    def delete_subtask(self, user_id, subtask_id):
        rows = self._execute(
            self._table('subtasks').select('task_id').eq('id', subtask_id).eq('user_id', user_id),
            'load subtask')
        if not rows:
            raise NotFoundError('Subtask not found')
        task_id = rows[0]['task_id']
        self._execute(self._table('subtasks').delete().eq('id', subtask_id).eq('user_id', user_id),
                      'delete subtask')
        self._refresh_completion(user_id, task_id)

    # -------------------------
    # Links
    # -------------------------
    def create_link(self, user_id, payload):
        self._require_task(user_id, payload['task_id'])
        rows = self._execute(
            self._table('task_links').insert({
                'task_id': payload['task_id'],
                'label': payload['label'],
                'url': payload['url'],
                'user_id': user_id,
            }),
            'create link')
        if not rows:
            raise StoreError('create link returned no row')
        return TaskLink.from_row(rows[0])

    def update_link(self, user_id, link_id, payload):
        rows = self._execute(
            self._table('task_links').update(payload).eq('id', link_id).eq('user_id', user_id),
            'update link')
        if not rows:
            raise NotFoundError('Task link not found')
        return TaskLink.from_row(rows[0])

    def delete_link(self, user_id, link_id):
        rows = self._execute(
            self._table('task_links').select('id').eq('id', link_id).eq('user_id', user_id),
            'load link')
        if not rows:
            raise NotFoundError('Task link not found')
        self._execute(self._table('task_links').delete().eq('id', link_id).eq('user_id', user_id),
                      'delete link')

    # -------------------------
    # Settings
    # -------------------------
    def get_settings(self, user_id, default_timezone='UTC'):
        rows = self._execute(
            self._table('settings').select('*').eq('user_id', user_id),
            'load settings')
        if rows:
            return Settings.from_row(rows[0])
        logger.info('Creating default settings for user %s', user_id)
        rows = self._execute(
            self._table('settings').insert({
                'user_id': user_id,
                'timezone': default_timezone,
                'sort_mode': DEFAULT_SORT_MODE,
                'show_completed': False,
            }),
            'create settings')
        if not rows:
            raise StoreError('create settings returned no row')
        return Settings.from_row(rows[0])

    def update_settings(self, user_id, payload, default_timezone='UTC'):
        current = self.get_settings(user_id, default_timezone)
        if not payload:
            return current
        rows = self._execute(
            self._table('settings').update(payload).eq('user_id', user_id),
            'update settings')
        if not rows:
            raise StoreError('update settings returned no row')
        return Settings.from_row(rows[0])

    # -------------------------
    # Users
    # -------------------------
    def find_user_by_email(self, email):
        rows = self._execute(
            self._table('users').select('*').eq('email', email),
            'load user')
        return rows[0] if rows else None

    def create_user(self, username, email, password_hash):
        rows = self._execute(
            self._table('users').insert({
                'username': username,
                'email': email,
                'password_hash': password_hash,
            }),
            'create user')
        if not rows:
            raise StoreError('create user returned no row')
        return rows[0]
