"""Calendar arithmetic in the group's timezone and the day status machine."""

from datetime import date, datetime, time, timezone

import pytest

from challenge_app.core.errors import ValidationError
from challenge_app.core.models import DayStatus
from challenge_app.core.schedule import (
    current_day_number,
    day_date,
    day_status,
    is_editable,
    local_today,
    parse_cutoff_time,
    today_day_number,
)

START = date(2026, 3, 1)
CHICAGO = "America/Chicago"
CUTOFF = time(22, 0)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_local_today_uses_group_timezone():
    # 03:00 UTC on March 3rd is still March 2nd in Chicago.
    assert local_today(CHICAGO, utc(2026, 3, 3, 3, 0)) == date(2026, 3, 2)
    assert local_today("UTC", utc(2026, 3, 3, 3, 0)) == date(2026, 3, 3)


def test_naive_datetimes_are_treated_as_utc():
    assert local_today(CHICAGO, datetime(2026, 3, 3, 3, 0)) == date(2026, 3, 2)


def test_day_numbers():
    assert day_date(START, 1) == START
    assert day_date(START, 30) == date(2026, 3, 30)
    assert today_day_number(START, CHICAGO, utc(2026, 3, 3, 15, 0)) == 3
    assert today_day_number(START, CHICAGO, utc(2026, 2, 27, 15, 0)) == -1
    assert current_day_number(START, CHICAGO, utc(2026, 2, 27, 15, 0)) == 1
    assert current_day_number(START, CHICAGO, utc(2026, 5, 1, 15, 0)) == 30


def test_only_today_before_cutoff_is_editable():
    morning = utc(2026, 3, 3, 15, 0)  # 09:00 local
    late = utc(2026, 3, 4, 4, 30)  # 22:30 local on March 3rd
    assert is_editable(START, CHICAGO, CUTOFF, 3, morning)
    assert not is_editable(START, CHICAGO, CUTOFF, 2, morning)
    assert not is_editable(START, CHICAGO, CUTOFF, 4, morning)
    assert not is_editable(START, CHICAGO, CUTOFF, 3, late)


def test_cutoff_is_exclusive():
    at_cutoff = utc(2026, 3, 4, 4, 0)  # exactly 22:00 local
    assert not is_editable(START, CHICAGO, CUTOFF, 3, at_cutoff)


@pytest.mark.parametrize(
    "day, has_submission, is_supervisor, now, expected",
    [
        (4, False, False, utc(2026, 3, 3, 15, 0), DayStatus.FUTURE),
        (4, True, True, utc(2026, 3, 3, 15, 0), DayStatus.FUTURE),
        (2, True, False, utc(2026, 3, 3, 15, 0), DayStatus.SUBMITTED),
        (3, True, False, utc(2026, 3, 4, 4, 30), DayStatus.SUBMITTED),
        (2, False, False, utc(2026, 3, 3, 15, 0), DayStatus.LOCKED),
        (2, False, True, utc(2026, 3, 3, 15, 0), DayStatus.LOCKED),
        (3, False, False, utc(2026, 3, 3, 15, 0), DayStatus.NOT_SUBMITTED),
        (3, False, False, utc(2026, 3, 4, 4, 30), DayStatus.LOCKED),
        (3, False, True, utc(2026, 3, 4, 4, 30), DayStatus.NOT_SUBMITTED),
    ],
)
def test_day_status(day, has_submission, is_supervisor, now, expected):
    status = day_status(START, CHICAGO, CUTOFF, day, has_submission, is_supervisor, now)
    assert status is expected


def test_parse_cutoff_time():
    assert parse_cutoff_time("23:59") == time(23, 59)
    assert parse_cutoff_time("07:30:15") == time(7, 30, 15)
    assert parse_cutoff_time(time(8, 0)) == time(8, 0)
    with pytest.raises(ValidationError):
        parse_cutoff_time("late evening")


def test_unknown_timezone():
    with pytest.raises(ValidationError):
        local_today("Mars/Olympus_Mons")
