# tests/test_validations.py

import pytest

from validations import (
    parse_bool,
    parse_create_link,
    parse_create_subtask,
    parse_create_task,
    parse_reorder,
    parse_update_settings,
    parse_update_link,
    parse_update_subtask,
    parse_update_task,
)

TASK_ID = '3f1c1f2e-7a1b-4c7e-9d43-2a6f1c9b8e01'


def test_create_task_defaults():
    payload, errors = parse_create_task({'title': '  Read  '})
    assert errors == []
    assert payload == {
        'title': 'Read',
        'description': None,
        'is_daily': False,
        'priority': 'NI',
        'order_index': 0,
    }


@pytest.mark.parametrize('body, message', [
    ({}, 'Title is required'),
    ({'title': '   '}, 'Title is required'),
    ({'title': 'x' * 256}, 'Title too long'),
    ({'title': 'ok', 'priority': 'HIGH'}, 'Priority must be one of'),
    ({'title': 'ok', 'is_daily': 'sometimes'}, 'is_daily must be a boolean'),
    ({'title': 'ok', 'order_index': 'first'}, 'order_index must be an integer'),
])
def test_create_task_errors(body, message):
    _, errors = parse_create_task(body)
    assert any(message in e for e in errors)


def test_update_task_only_carries_present_fields():
    payload, errors = parse_update_task({'priority': 'UI', 'is_daily': True})
    assert errors == []
    assert payload == {'priority': 'UI', 'is_daily': True}


def test_update_task_completed_at_and_daily_meta():
    payload, errors = parse_update_task({
        'completed_at': '2024-06-01T12:00:00+02:00',
        'daily_meta': {'lastCompletedDate': '2024-06-01', 'currentStreak': 2, 'bestStreak': 5},
        'completion': {'completedCount': 1, 'total': 3},
    })
    assert errors == []
    assert payload['completed_at'] == '2024-06-01T10:00:00+00:00'
    assert payload['daily_meta'] == {'lastCompletedDate': '2024-06-01', 'currentStreak': 2, 'bestStreak': 5}
    assert payload['completion'] == {'completedCount': 1, 'total': 3}


def test_update_task_allows_clearing_completion():
    payload, errors = parse_update_task({'completed_at': None, 'daily_meta': None})
    assert errors == []
    assert payload == {'completed_at': None, 'daily_meta': None}


@pytest.mark.parametrize('body', [
    {'completed_at': 'tomorrow'},
    {'daily_meta': {'currentStreak': -1}},
    {'daily_meta': {'currentStreak': 1, 'lastCompletedDate': '06/01/2024'}},
    {'completion': {'completedCount': 1}},
])
def test_update_task_rejects_bad_shapes(body):
    payload, errors = parse_update_task(body)
    assert errors
    assert not payload


def test_subtask_parsing():
    payload, errors = parse_create_subtask({'task_id': TASK_ID, 'title': 'step'})
    assert errors == []
    assert payload == {'task_id': TASK_ID, 'title': 'step'}

    _, errors = parse_create_subtask({'task_id': 'abc', 'title': 'step'})
    assert errors == ['task_id must be a UUID']

    payload, errors = parse_update_subtask({'done': 'true'})
    assert payload == {'done': True}


def test_link_parsing():
    payload, errors = parse_create_link({'task_id': TASK_ID, 'label': 'Docs', 'url': 'https://example.com/x'})
    assert errors == []
    assert payload['url'] == 'https://example.com/x'

    _, errors = parse_create_link({'task_id': TASK_ID, 'label': 'Docs', 'url': 'ftp:/nope'})
    assert errors == ['Invalid URL']

    _, errors = parse_create_link({'task_id': TASK_ID, 'label': 'x' * 101, 'url': 'http://a.b'})
    assert errors == ['Label too long']


def test_settings_parsing_rejects_unknown_timezone():
    payload, errors = parse_update_settings({'timezone': 'Europe/Lisbon', 'sort_mode': 'manualOnly'})
    assert errors == []
    assert payload == {'timezone': 'Europe/Lisbon', 'sort_mode': 'manualOnly'}

    payload, errors = parse_update_settings({'timezone': 'Moon/Base'})
    assert errors == ['Invalid timezone: Moon/Base']
    assert payload == {}

    _, errors = parse_update_settings({'sort_mode': 'random'})
    assert errors


def test_reorder_parsing():
    assert parse_reorder({'task_id': 'a', 'index': '2'}) == ({'task_id': 'a', 'index': 2}, [])
    _, errors = parse_reorder({'index': -1})
    assert len(errors) == 2


def test_parse_bool():
    assert parse_bool('yes') is True
    assert parse_bool('0') is False
    assert parse_bool('maybe', default=None) is None
    assert parse_bool(None, default=True) is True


def test_daily_meta_best_streak_cannot_trail_current():
    payload, errors = parse_update_task({'daily_meta': {'currentStreak': 5, 'bestStreak': 3}})
    assert errors == ['daily_meta.bestStreak cannot be less than currentStreak']
    assert payload == {}


def test_settings_keep_timezone_name_exactly():
    _, errors = parse_update_settings({'timezone': ' UTC '})
    assert errors == ['Invalid timezone:  UTC ']


@pytest.mark.parametrize('parser', [
    parse_create_task,
    parse_update_task,
    parse_create_subtask,
    parse_update_link,
    parse_update_subtask,
    parse_create_link,
    parse_update_settings,
    parse_reorder,
])
@pytest.mark.parametrize('body', [['a'], 'title', 7])
def test_non_object_bodies(parser, body):
    assert parser(body) == ({}, ['Request body must be a JSON object'])
