"""Domain models for the daily challenge."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum


class GroupRole(str, Enum):
    """Membership role inside a group."""

    SUPERVISOR = "supervisor"
    PLAYER = "player"


class DayStatus(str, Enum):
    """Availability of one challenge day for one participant."""

    FUTURE = "future"
    NOT_SUBMITTED = "not_submitted"
    LOCKED = "locked"
    SUBMITTED = "submitted"


@dataclass(slots=True)
class Group:
    """A private cohort running the challenge on one schedule."""

    id: str
    name: str
    invite_code: str
    start_date: date
    timezone: str
    cutoff_time: time
    max_players: int
    created_by: str


@dataclass(slots=True)
class GroupMember:
    """Membership of a user in a group."""

    group_id: str
    user_id: str
    role: GroupRole
    display_name: str
    joined_at: datetime

    @property
    def is_supervisor(self) -> bool:
        return self.role is GroupRole.SUPERVISOR


@dataclass(slots=True)
class DayContent:
    """Markdown texts shown to participants for one day."""

    group_id: str
    day_number: int
    hadith_text: str = ""
    fiqh_statement_text: str = ""
    impact_task_text: str = ""
    updated_by: str | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class DayAnswerKey:
    """Correct answer for the day's true/false statement."""

    group_id: str
    day_number: int
    correct_answer: bool
    updated_by: str | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class DayPost:
    """Marks a day as published by a supervisor."""

    group_id: str
    day_number: int
    posted_by: str
    posted_at: datetime


@dataclass(frozen=True, slots=True)
class DayTemplate:
    """Seed content for one challenge day."""

    day_number: int
    hadith_text: str
    fiqh_statement_text: str
    impact_task_text: str
    correct_answer: bool


@dataclass(frozen=True, slots=True)
class RawAnswers:
    """The four inputs a participant records for a day."""

    quran_points: int
    hadith_points: int
    fiqh_answer: bool
    impact_done: bool


@dataclass(slots=True)
class Submission:
    """One participant's entry for one day, unique per (group, user, day)."""

    id: str
    group_id: str
    user_id: str
    day_number: int
    quran_points: int
    hadith_points: int
    fiqh_answer: bool
    impact_done: bool
    fiqh_points: int
    impact_points: int
    auto_total: int
    override_total: int | None
    total_points: int
    created_at: datetime
    updated_at: datetime

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.group_id, self.user_id, self.day_number)

    @property
    def raw(self) -> RawAnswers:
        return RawAnswers(
            quran_points=self.quran_points,
            hadith_points=self.hadith_points,
            fiqh_answer=self.fiqh_answer,
            impact_done=self.impact_done,
        )


@dataclass(frozen=True, slots=True)
class OverrideLogEntry:
    """Immutable audit record of a supervisor changing an override."""

    id: str
    submission_id: str
    group_id: str
    supervisor_id: str
    previous_override_total: int | None
    new_override_total: int | None
    previous_total_points: int
    new_total_points: int
    reason: str
    created_at: datetime
