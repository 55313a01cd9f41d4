# tests/test_timezones.py

from datetime import date, datetime, timezone

import pytest

from timezones import (
    InvalidTimezone,
    day_before,
    format_instant,
    is_day_before,
    is_same_local_day,
    is_valid_timezone,
    local_date,
    parse_instant,
    resolve_timezone,
    today_string,
)


def test_parse_instant_accepts_z_suffix_and_offsets():
    a = parse_instant('2024-06-01T10:00:00Z')
    b = parse_instant('2024-06-01T12:00:00+02:00')
    assert a == b
    assert a.tzinfo is not None


def test_parse_instant_treats_naive_as_utc():
    assert parse_instant('2024-06-01T10:00:00') == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)


def test_format_instant_normalises_to_utc():
    assert format_instant('2024-06-01T12:00:00+02:00') == '2024-06-01T10:00:00+00:00'


def test_local_date_converts_before_truncating():
    instant = '2024-01-02T04:30:00+00:00'
    assert local_date(instant, 'UTC') == date(2024, 1, 2)
    assert local_date(instant, 'America/New_York') == date(2024, 1, 1)
    assert local_date(instant, 'Asia/Tokyo') == date(2024, 1, 2)


def test_day_before_is_calendar_arithmetic():
    assert day_before(date(2024, 3, 1)) == date(2024, 2, 29)
    assert day_before(date(2024, 1, 1)) == date(2023, 12, 31)


def test_is_day_before_handles_missing_and_malformed_days():
    now = datetime(2024, 6, 2, 12, tzinfo=timezone.utc)
    assert is_day_before('2024-06-01', 'UTC', now)
    assert not is_day_before('2024-06-02', 'UTC', now)
    assert not is_day_before(None, 'UTC', now)
    assert not is_day_before('yesterday', 'UTC', now)


def test_is_same_local_day_and_today_string():
    now = datetime(2024, 6, 1, 23, 0, tzinfo=timezone.utc)
    assert today_string('UTC', now) == '2024-06-01'
    assert today_string('Europe/Berlin', now) == '2024-06-02'
    assert is_same_local_day('2024-06-01T00:00:00Z', 'UTC', now)
    assert not is_same_local_day('2024-06-01T00:00:00Z', 'Europe/Berlin', now)


def test_resolve_timezone():
    assert str(resolve_timezone('America/New_York')) == 'America/New_York'
    with pytest.raises(InvalidTimezone) as exc:
        resolve_timezone('Atlantis/Capital')
    assert exc.value.name == 'Atlantis/Capital'


def test_is_valid_timezone():
    assert is_valid_timezone('UTC')
    assert not is_valid_timezone(None)
    assert not is_valid_timezone('Nope/Nope')


def test_padded_timezone_names_are_rejected():
    assert not is_valid_timezone(' UTC ')
    with pytest.raises(InvalidTimezone):
        resolve_timezone('America/New_York ')


@pytest.mark.parametrize('value', [
    '2024-06-01T10:00:00.1+00:00',
    '2024-06-01T10:00:00.12345+00:00',
    '2024-06-01T10:00:00.123456789Z',
])
def test_parse_instant_accepts_any_fraction_length(value):
    assert parse_instant(value).replace(microsecond=0) == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)


def test_parse_instant_rejects_garbage():
    with pytest.raises(ValueError):
        parse_instant('not a timestamp')
