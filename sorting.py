"""Display ordering for the task board."""
from dataclasses import replace

from models import PRIORITY_VALUES

PRIORITY_ORDER = {p: i for i, p in enumerate(PRIORITY_VALUES)}


def sort_tasks(tasks, sort_mode='priorityThenManual'):
    if sort_mode == 'manualOnly':
        return sorted(tasks, key=lambda t: t.order_index)
    return sorted(tasks, key=lambda t: (PRIORITY_ORDER.get(t.priority, len(PRIORITY_ORDER)), t.order_index))


def group_tasks_by_priority(tasks):
    groups = {p: [] for p in PRIORITY_VALUES}
    for t in tasks:
        groups.setdefault(t.priority, []).append(t)
    return groups


def move_task(tasks, task_id, new_index):
    """Move one task to ``new_index`` and renumber order_index 0..n-1."""
    moving = next((t for t in tasks if t.id == task_id), None)
    if moving is None:
        return list(tasks)
    others = [t for t in tasks if t.id != task_id]
    new_index = max(0, min(int(new_index), len(others)))
    others.insert(new_index, moving)
    return [replace(t, order_index=i) for i, t in enumerate(others)]
