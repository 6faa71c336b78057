"""Date and timezone arithmetic for the challenge calendar.

Day numbers map onto calendar dates in the group's own timezone: day 1 is the
group's start date. Submissions for a day are only accepted on that date and
strictly before the daily cutoff, unless the caller is a supervisor.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from challenge_app.constants.challenge_constants import DAY_COUNT
from challenge_app.core.errors import ValidationError
from challenge_app.core.models import DayStatus


def get_zone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown timezone '{timezone_name}'.") from exc


def _utc_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def local_now(timezone_name: str, now: datetime | None = None) -> datetime:
    return _utc_now(now).astimezone(get_zone(timezone_name))


def local_today(timezone_name: str, now: datetime | None = None) -> date:
    return local_now(timezone_name, now).date()


def local_time(timezone_name: str, now: datetime | None = None) -> time:
    return local_now(timezone_name, now).time().replace(microsecond=0, tzinfo=None)


def day_date(start_date: date, day_number: int) -> date:
    return start_date + timedelta(days=day_number - 1)


def today_day_number(start_date: date, timezone_name: str, now: datetime | None = None) -> int:
    """Return today's day number; values outside 1..30 mean before or after the challenge."""
    return (local_today(timezone_name, now) - start_date).days + 1


def current_day_number(start_date: date, timezone_name: str, now: datetime | None = None) -> int:
    return max(1, min(DAY_COUNT, today_day_number(start_date, timezone_name, now)))


def is_editable(
    start_date: date,
    timezone_name: str,
    cutoff_time: time,
    day_number: int,
    now: datetime | None = None,
) -> bool:
    """Return True when a participant may still save the given day."""
    moment = local_now(timezone_name, now)
    if day_date(start_date, day_number) != moment.date():
        return False
    return moment.time().replace(microsecond=0, tzinfo=None) < cutoff_time


def day_status(
    start_date: date,
    timezone_name: str,
    cutoff_time: time,
    day_number: int,
    has_submission: bool,
    is_supervisor: bool = False,
    now: datetime | None = None,
) -> DayStatus:
    today = local_today(timezone_name, now)
    target = day_date(start_date, day_number)
    if target > today:
        return DayStatus.FUTURE
    if has_submission:
        return DayStatus.SUBMITTED
    if target < today:
        return DayStatus.LOCKED
    if is_supervisor:
        return DayStatus.NOT_SUBMITTED
    if local_time(timezone_name, now) < cutoff_time:
        return DayStatus.NOT_SUBMITTED
    return DayStatus.LOCKED


def parse_cutoff_time(value: str | time) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time of day."""
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)
    text = value.strip()
    if len(text) == 5:
        text = f"{text}:00"
    try:
        return time.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Cutoff time '{value}' must look like HH:MM or HH:MM:SS.") from exc
