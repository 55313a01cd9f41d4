"""Row shapes for tasks, subtasks, links and user settings."""
from dataclasses import dataclass, field
from typing import Any, Optional

PRIORITY_VALUES = ('UI', 'UN', 'NI', 'NN')
DEFAULT_PRIORITY = 'NI'

# Eisenhower quadrants: Urgent/Important, Urgent/Not important, ...
PRIORITY_LABELS = {
    'UI': 'Do Now',
    'UN': 'Quick',
    'NI': 'Schedule',
    'NN': 'Maybe',
}

SORT_MODES = ('priorityThenManual', 'manualOnly')
DEFAULT_SORT_MODE = 'priorityThenManual'


def _as_int(value, default=0):
    try:
        if value is None or str(value).strip() == '':
            return default
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class DailyMeta:
    """Streak bookkeeping for a daily task, stored as JSON on the task row."""

    last_completed_date: Optional[str] = None
    current_streak: int = 0
    best_streak: Optional[int] = None

    @classmethod
    def from_row(cls, raw):
        if not raw:
            return None
        best = raw.get('bestStreak')
        return cls(
            last_completed_date=raw.get('lastCompletedDate') or None,
            current_streak=max(_as_int(raw.get('currentStreak')), 0),
            best_streak=None if best is None else max(_as_int(best), 0),
        )

    def to_row(self):
        row = {'currentStreak': self.current_streak}
        if self.last_completed_date is not None:
            row['lastCompletedDate'] = self.last_completed_date
        if self.best_streak is not None:
            row['bestStreak'] = self.best_streak
        return row


# A daily task that has never been completed.
EMPTY_DAILY_META = DailyMeta(last_completed_date=None, current_streak=0, best_streak=0)


@dataclass(frozen=True)
class Completion:
    completed_count: int = 0
    total: int = 0

    @classmethod
    def from_row(cls, raw):
        raw = raw or {}
        return cls(
            completed_count=_as_int(raw.get('completedCount')),
            total=_as_int(raw.get('total')),
        )

    @classmethod
    def from_subtasks(cls, subtasks):
        return cls(completed_count=sum(1 for st in subtasks if st.done), total=len(subtasks))

    def to_row(self):
        return {'completedCount': self.completed_count, 'total': self.total}


@dataclass(frozen=True)
class Subtask:
    id: str
    task_id: str
    user_id: Optional[str] = None
    title: str = ''
    done: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.get('id'),
            task_id=row.get('task_id'),
            user_id=row.get('user_id'),
            title=row.get('title') or '',
            done=bool(row.get('done')),
            created_at=row.get('created_at'),
        )

    def to_row(self):
        return {
            'id': self.id,
            'task_id': self.task_id,
            'user_id': self.user_id,
            'title': self.title,
            'done': self.done,
            'created_at': self.created_at,
        }


@dataclass(frozen=True)
class TaskLink:
    id: str
    task_id: str
    user_id: Optional[str] = None
    label: str = ''
    url: str = ''
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.get('id'),
            task_id=row.get('task_id'),
            user_id=row.get('user_id'),
            label=row.get('label') or '',
            url=row.get('url') or '',
            created_at=row.get('created_at'),
        )

    def to_row(self):
        return {
            'id': self.id,
            'task_id': self.task_id,
            'user_id': self.user_id,
            'label': self.label,
            'url': self.url,
            'created_at': self.created_at,
        }


@dataclass(frozen=True)
class Task:
    id: str
    user_id: Optional[str] = None
    title: str = ''
    description: Optional[str] = None
    is_daily: bool = False
    priority: str = DEFAULT_PRIORITY
    order_index: int = 0
    completed_at: Optional[str] = None
    completion: Completion = field(default_factory=Completion)
    daily_meta: Optional[DailyMeta] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    subtasks: tuple = ()
    links: tuple = ()

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> 'Task':
        """Build a Task from a store row; unknown keys are ignored."""
        subtasks = tuple(Subtask.from_row(r) for r in (row.get('subtasks') or []))
        links = tuple(TaskLink.from_row(r) for r in (row.get('links') or []))
        priority = row.get('priority')
        return cls(
            id=row.get('id'),
            user_id=row.get('user_id'),
            title=row.get('title') or '',
            description=row.get('description'),
            is_daily=bool(row.get('is_daily')),
            priority=priority if priority in PRIORITY_VALUES else DEFAULT_PRIORITY,
            order_index=_as_int(row.get('order_index')),
            completed_at=row.get('completed_at') or None,
            completion=Completion.from_row(row.get('completion')),
            daily_meta=DailyMeta.from_row(row.get('daily_meta')),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            subtasks=subtasks,
            links=links,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'is_daily': self.is_daily,
            'priority': self.priority,
            'order_index': self.order_index,
            'completed_at': self.completed_at,
            'completion': self.completion.to_row(),
            'daily_meta': self.daily_meta.to_row() if self.daily_meta else None,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'subtasks': [st.to_row() for st in self.subtasks],
            'links': [ln.to_row() for ln in self.links],
        }

    @property
    def is_completed(self):
        return self.completed_at is not None


@dataclass(frozen=True)
class Settings:
    user_id: Optional[str] = None
    timezone: str = 'UTC'
    sort_mode: str = DEFAULT_SORT_MODE
    show_completed: bool = False
    id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        sort_mode = row.get('sort_mode')
        return cls(
            id=row.get('id'),
            user_id=row.get('user_id'),
            timezone=row.get('timezone') or 'UTC',
            sort_mode=sort_mode if sort_mode in SORT_MODES else DEFAULT_SORT_MODE,
            show_completed=bool(row.get('show_completed')),
            created_at=row.get('created_at'),
        )

    def to_row(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'timezone': self.timezone,
            'sort_mode': self.sort_mode,
            'show_completed': self.show_completed,
            'created_at': self.created_at,
        }
