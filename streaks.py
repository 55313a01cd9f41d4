"""
Streak and day-rollover rules for daily tasks.

All functions are pure: they take a task (or list of tasks), an IANA timezone
name and the current instant, and return new values. Nothing here reads the
clock or touches storage; callers persist what comes back.
"""
import logging
from dataclasses import replace
from datetime import datetime

from models import EMPTY_DAILY_META, Completion, DailyMeta, Task
from timezones import (
    InvalidTimezone,
    format_day,
    format_instant,
    is_day_before,
    is_same_local_day,
    local_date,
    resolve_timezone,
    today_string,
)

__all__ = [
    'InvalidTimezone',
    'calculate_streak',
    'record_completion',
    'reset_if_day_elapsed',
    'current_streaks',
    'best_streak_across_all',
    'total_streak_days',
    'completions_by_day',
    'streak_summary',
]

logger = logging.getLogger(__name__)


def calculate_streak(task: Task, timezone: str, now: datetime) -> int:
    """Streak as it stands right now.

    The stored ``current_streak`` is only trusted while the last completion
    was today or yesterday; after a gap it may still hold a stale value until
    the next completion overwrites it, so report 0.
    """
    if not task.is_daily or task.daily_meta is None:
        return 0
    meta = task.daily_meta
    if not meta.last_completed_date:
        return 0
    today = today_string(timezone, now)
    if meta.last_completed_date == today:
        return meta.current_streak
    if is_day_before(meta.last_completed_date, timezone, now):
        return meta.current_streak
    return 0


def record_completion(task: Task, timezone: str, now: datetime) -> Task:
    """Mark a daily task done at ``now`` and advance its streak."""
    if not task.is_daily:
        return task
    today = today_string(timezone, now)
    prev = task.daily_meta or EMPTY_DAILY_META

    if prev.last_completed_date == today:
        # completing twice in one day keeps the streak where it is
        new_streak = prev.current_streak
    elif is_day_before(prev.last_completed_date, timezone, now):
        new_streak = prev.current_streak + 1
    else:
        new_streak = 1

    new_best = max(prev.best_streak or 0, new_streak)
    logger.debug('Task %s completed on %s: streak %s -> %s (best %s)',
                 task.id, today, prev.current_streak, new_streak, new_best)
    return replace(
        task,
        completed_at=format_instant(now),
        daily_meta=DailyMeta(
            last_completed_date=today,
            current_streak=new_streak,
            best_streak=new_best,
        ),
    )


def reset_if_day_elapsed(task: Task, timezone: str, now: datetime) -> Task:
    """Clear yesterday's "done" mark so a daily task can be completed again.

    Streak metadata is left alone; ``calculate_streak`` still needs it to tell
    "done yesterday, not yet today" from a broken streak. Subtasks keep their
    checked state, only the progress counter goes back to zero. A
    ``completed_at`` that cannot be parsed counts as an earlier day.
    """
    if not task.is_daily or not task.completed_at:
        return task
    resolve_timezone(timezone)
    try:
        if is_same_local_day(task.completed_at, timezone, now):
            return task
    except ValueError:
        logger.warning('Task %s has unreadable completed_at %r; resetting', task.id, task.completed_at)
    total = len(task.subtasks) if task.subtasks else task.completion.total
    return replace(
        task,
        completed_at=None,
        completion=Completion(completed_count=0, total=total),
    )


def current_streaks(tasks, timezone: str, now: datetime) -> list[tuple[Task, int]]:
    """Daily tasks with a live streak, longest first (ties by task id)."""
    resolve_timezone(timezone)
    pairs = [(t, calculate_streak(t, timezone, now)) for t in tasks if t.is_daily]
    pairs = [(t, s) for t, s in pairs if s > 0]
    pairs.sort(key=lambda p: (-p[1], str(p[0].id)))
    return pairs


def best_streak_across_all(tasks) -> int:
    best = 0
    for t in tasks:
        if t.is_daily and t.daily_meta and t.daily_meta.best_streak:
            best = max(best, t.daily_meta.best_streak)
    return best


def total_streak_days(pairs) -> int:
    return sum(streak for _, streak in pairs)


def completions_by_day(tasks, timezone: str) -> list[tuple[str, list[Task]]]:
    """Completed tasks grouped by the local day they were completed, newest day first."""
    resolve_timezone(timezone)
    groups = {}
    for t in tasks:
        if not t.completed_at:
            continue
        try:
            day = format_day(local_date(t.completed_at, timezone))
        except ValueError:
            logger.warning('Skipping task %s with unreadable completed_at %r', t.id, t.completed_at)
            continue
        groups.setdefault(day, []).append(t)
    return sorted(groups.items(), key=lambda kv: kv[0], reverse=True)


def streak_summary(tasks, timezone: str, now: datetime) -> dict:
    """Numbers for the streaks page."""
    pairs = current_streaks(tasks, timezone, now)
    completed = [t for t in tasks if t.completed_at]
    return {
        'current_streaks': [
            {'task_id': t.id, 'title': t.title, 'streak': s} for t, s in pairs
        ],
        'best_streak': best_streak_across_all(tasks),
        'total_streak_days': total_streak_days(pairs),
        'total_completed': len(completed),
        'daily_completed': sum(1 for t in completed if t.is_daily),
        'completions_by_day': [
            {
                'date': day,
                'tasks': [
                    {'task_id': t.id, 'title': t.title, 'is_daily': t.is_daily,
                     'completed_at': t.completed_at}
                    for t in day_tasks
                ],
            }
            for day, day_tasks in completions_by_day(completed, timezone)
        ],
    }
