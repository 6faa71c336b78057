"""Shared fixtures: a settable clock and a manager with one populated group."""

from datetime import date, datetime, timezone

import pytest

from challenge_app.core.challenge_manager import ChallengeManager


class FakeClock:
    """Callable clock whose current instant tests can move."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


START_DATE = date(2026, 3, 1)
# 15:00 UTC on March 3rd is 09:00 in Chicago (CST), i.e. day 3 of the challenge.
DAY_THREE_MORNING = datetime(2026, 3, 3, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FakeClock(DAY_THREE_MORNING)


@pytest.fixture
def manager(clock):
    return ChallengeManager(clock=clock)


@pytest.fixture
def group(manager):
    """A Chicago group with supervisor 'sup' and players 'amina' and 'huda'."""
    created, _ = manager.create_group(
        "sup",
        "Supervisor",
        "Ramadan circle",
        start_date=START_DATE,
        timezone_name="America/Chicago",
        cutoff_time="22:00",
        max_players=4,
    )
    manager.join_group("amina", "Amina", created.invite_code)
    manager.join_group("huda", "Huda", created.invite_code)
    return created
