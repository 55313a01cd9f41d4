# tests/test_sorting.py

from models import Task
from sorting import group_tasks_by_priority, move_task, sort_tasks


def _tasks():
    return [
        Task(id='a', priority='NN', order_index=0),
        Task(id='b', priority='UI', order_index=3),
        Task(id='c', priority='NI', order_index=1),
        Task(id='d', priority='UI', order_index=2),
    ]


def test_priority_then_manual():
    assert [t.id for t in sort_tasks(_tasks())] == ['d', 'b', 'c', 'a']


def test_manual_only():
    assert [t.id for t in sort_tasks(_tasks(), 'manualOnly')] == ['a', 'c', 'd', 'b']


def test_sort_returns_new_list():
    tasks = _tasks()
    sort_tasks(tasks)
    assert [t.id for t in tasks] == ['a', 'b', 'c', 'd']


def test_group_by_priority_has_every_quadrant():
    groups = group_tasks_by_priority(_tasks())
    assert list(groups) == ['UI', 'UN', 'NI', 'NN']
    assert [t.id for t in groups['UI']] == ['b', 'd']
    assert groups['UN'] == []


def test_move_task_renumbers():
    ordered = sort_tasks(_tasks(), 'manualOnly')
    moved = move_task(ordered, 'b', 0)
    assert [(t.id, t.order_index) for t in moved] == [('b', 0), ('a', 1), ('c', 2), ('d', 3)]


def test_move_task_clamps_index_and_ignores_unknown_id():
    ordered = sort_tasks(_tasks(), 'manualOnly')
    assert [t.id for t in move_task(ordered, 'a', 99)] == ['c', 'd', 'b', 'a']
    assert move_task(ordered, 'missing', 0) == ordered
