"""Business logic shared by the API and scripts: authorization around the engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
import logging
from typing import Callable

from challenge_app.constants.challenge_constants import (
    DAY_COUNT,
    DEFAULT_CUTOFF_TIME,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_TIMEZONE,
    OVERRIDE_LOG_PAGE_SIZE,
)
from challenge_app.core.errors import AuthorizationError, NotFoundError
from challenge_app.core.markdown_renderer import renderer
from challenge_app.core.models import (
    DayContent,
    DayPost,
    DayStatus,
    DayTemplate,
    Group,
    GroupMember,
    GroupRole,
    OverrideLogEntry,
    RawAnswers,
    Submission,
)
from challenge_app.core import schedule
from challenge_app.core.scoring import resolve_correct_answer, validate_day_number
from challenge_app.core.services.day_content_repository import DayContentRepository
from challenge_app.core.services.group_directory import GroupDirectory
from challenge_app.core.services.leaderboard import Leaderboard, LeaderboardRow, rank_of
from challenge_app.core.services.override_log import OverrideLog
from challenge_app.core.services.scoring_engine import ScoringEngine
from challenge_app.core.services.submission_repository import SubmissionRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DayView:
    """Everything a member needs to render one challenge day."""

    group_id: str
    day_number: int
    calendar_date: date
    content: DayContent
    content_html: dict[str, str]
    submission: Submission | None
    post: DayPost | None
    status: DayStatus
    editable: bool
    correct_answer: bool | None


@dataclass(frozen=True, slots=True)
class HistoryDay:
    day_number: int
    calendar_date: date
    status: DayStatus
    total_points: int


@dataclass(frozen=True, slots=True)
class History:
    user_id: str
    days: list[HistoryDay]
    total_points: int


@dataclass(frozen=True, slots=True)
class PlayerReport:
    """Per-day breakdown of one participant for supervisors."""

    user_id: str
    display_name: str
    submissions: list[Submission]
    total_points: int
    days_submitted: int
    average_points: float


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeManager:
    """Facade for challenge services: groups, content, scoring and rankings."""

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        default_templates: list[DayTemplate] | None = None,
    ) -> None:
        self._clock = clock
        self._default_templates = list(default_templates or [])

        # Services
        self._groups = GroupDirectory()
        self._day_contents = DayContentRepository()
        self._submissions = SubmissionRepository()
        self._override_log = OverrideLog()
        self._engine = ScoringEngine(
            submissions=self._submissions,
            day_contents=self._day_contents,
            override_log=self._override_log,
            clock=clock,
        )

    # --- Groups ---

    def create_group(
        self,
        user_id: str,
        display_name: str,
        name: str,
        start_date: date | None = None,
        timezone_name: str = DEFAULT_TIMEZONE,
        cutoff_time: str | time = DEFAULT_CUTOFF_TIME,
        max_players: int = DEFAULT_MAX_PLAYERS,
    ) -> tuple[Group, GroupMember]:
        """Create a group; the creator joins it as its supervisor.

        When the manager was given default templates they become the new
        group's day content and answer keys.
        """
        timezone_name = timezone_name.strip() or DEFAULT_TIMEZONE
        if start_date is None:
            start_date = schedule.local_today(timezone_name, self._clock())
        group = self._groups.create_group(
            name=name,
            start_date=start_date,
            timezone_name=timezone_name,
            cutoff_time=schedule.parse_cutoff_time(cutoff_time),
            max_players=max_players,
            created_by=user_id,
        )
        member = self._groups.add_member(group.id, user_id, display_name, GroupRole.SUPERVISOR)
        if self._default_templates:
            self.seed_day_templates(group.id, user_id, self._default_templates)
        logger.info("User %s created group %s (%s)", user_id, group.id, group.name)
        return group, member

    def join_group(self, user_id: str, display_name: str, invite_code: str) -> tuple[Group, GroupMember]:
        group = self._groups.find_by_invite_code(invite_code)
        member = self._groups.add_member(group.id, user_id, display_name, GroupRole.PLAYER)
        return group, member

    def get_group(self, group_id: str, user_id: str) -> Group:
        self._require_member(group_id, user_id)
        return self._groups.get_group(group_id)

    def get_members(self, group_id: str, user_id: str) -> list[GroupMember]:
        self._require_member(group_id, user_id)
        return self._groups.get_members(group_id)

    def update_group_settings(
        self,
        group_id: str,
        user_id: str,
        name: str | None = None,
        start_date: date | None = None,
        timezone_name: str | None = None,
        cutoff_time: str | time | None = None,
        max_players: int | None = None,
    ) -> Group:
        self._require_supervisor(group_id, user_id)
        return self._groups.update_group(
            group_id,
            name=name,
            start_date=start_date,
            timezone_name=timezone_name,
            cutoff_time=schedule.parse_cutoff_time(cutoff_time) if cutoff_time is not None else None,
            max_players=max_players,
        )

    # --- Day content ---

    def get_day(self, group_id: str, user_id: str, day_number: int) -> DayView:
        member = self._require_member(group_id, user_id)
        validate_day_number(day_number)
        group = self._groups.get_group(group_id)
        now = self._clock()

        content = self._day_contents.get_content(group_id, day_number)
        submission = self._submissions.get(group_id, user_id, day_number)
        correct_answer = None
        if member.is_supervisor:
            key = self._day_contents.get_answer_key(group_id, day_number)
            correct_answer = resolve_correct_answer(key.correct_answer if key is not None else None)

        return DayView(
            group_id=group_id,
            day_number=day_number,
            calendar_date=schedule.day_date(group.start_date, day_number),
            content=content,
            content_html=renderer.render_day(content),
            submission=submission,
            post=self._day_contents.get_post(group_id, day_number),
            status=schedule.day_status(
                group.start_date,
                group.timezone,
                group.cutoff_time,
                day_number,
                has_submission=submission is not None,
                is_supervisor=member.is_supervisor,
                now=now,
            ),
            editable=member.is_supervisor or self._is_editable(group, day_number, now),
            correct_answer=correct_answer,
        )

    def save_day_content(
        self,
        group_id: str,
        user_id: str,
        day_number: int,
        hadith_text: str,
        fiqh_statement_text: str,
        impact_task_text: str,
        correct_answer: bool,
    ) -> DayContent:
        """Save a day's texts and answer key. Existing scores are not rescored."""
        self._require_supervisor(group_id, user_id)
        validate_day_number(day_number)
        content = self._day_contents.save_content(
            group_id,
            day_number,
            hadith_text=hadith_text,
            fiqh_statement_text=fiqh_statement_text,
            impact_task_text=impact_task_text,
            updated_by=user_id,
        )
        self._day_contents.set_answer_key(group_id, day_number, correct_answer, updated_by=user_id)
        return content

    def seed_day_templates(self, group_id: str, user_id: str, templates: list[DayTemplate]) -> int:
        self._require_supervisor(group_id, user_id)
        for template in templates:
            self.save_day_content(
                group_id,
                user_id,
                template.day_number,
                hadith_text=template.hadith_text,
                fiqh_statement_text=template.fiqh_statement_text,
                impact_task_text=template.impact_task_text,
                correct_answer=template.correct_answer,
            )
        logger.info("Seeded %d day templates into group %s", len(templates), group_id)
        return len(templates)

    def post_day(self, group_id: str, user_id: str, day_number: int) -> DayPost:
        self._require_supervisor(group_id, user_id)
        validate_day_number(day_number)
        return self._day_contents.post_day(group_id, day_number, posted_by=user_id)

    # --- Scoring ---

    def submit_day(
        self,
        group_id: str,
        user_id: str,
        day_number: int,
        raw: RawAnswers,
    ) -> Submission:
        member = self._require_member(group_id, user_id)
        validate_day_number(day_number)
        if not member.is_supervisor:
            group = self._groups.get_group(group_id)
            if not self._is_editable(group, day_number, self._clock()):
                logger.warning(
                    "Rejected submission for day %s by %s in group %s: outside the editable window",
                    day_number,
                    user_id,
                    group_id,
                )
                raise AuthorizationError("This day is closed and can no longer be edited.")
        return self._engine.submit_day(group_id, user_id, day_number, raw)

    def apply_override(
        self,
        group_id: str,
        supervisor_id: str,
        submission_id: str,
        new_override_total: int | None,
        reason: str,
        expected_total_points: int | None = None,
    ) -> tuple[Submission, OverrideLogEntry]:
        self._require_supervisor(group_id, supervisor_id)
        current = self._submissions.get_by_id(submission_id)
        if current is None or current.group_id != group_id:
            raise NotFoundError(f"Submission '{submission_id}' does not exist.")
        return self._engine.apply_override(
            submission_id,
            new_override_total,
            reason,
            supervisor_id,
            expected_total_points=expected_total_points,
        )

    def list_overrides(
        self,
        group_id: str,
        user_id: str,
        limit: int | None = OVERRIDE_LOG_PAGE_SIZE,
    ) -> list[OverrideLogEntry]:
        self._require_supervisor(group_id, user_id)
        return self._override_log.list_for_group(group_id, limit=limit)

    def list_day_submissions(self, group_id: str, user_id: str, day_number: int) -> list[Submission]:
        """Return a day's submissions, highest total first, for the override screen."""
        self._require_supervisor(group_id, user_id)
        validate_day_number(day_number)
        rows = self._submissions.list_for_group(group_id, day_number)
        return sorted(rows, key=lambda s: -s.total_points)

    # --- Leaderboards ---

    def current_day_number(self, group_id: str) -> int:
        group = self._groups.get_group(group_id)
        return schedule.current_day_number(group.start_date, group.timezone, self._clock())

    def daily_leaderboard(
        self,
        group_id: str,
        user_id: str,
        day_number: int | None = None,
    ) -> list[LeaderboardRow]:
        self._require_member(group_id, user_id)
        if day_number is None:
            day_number = self.current_day_number(group_id)
        validate_day_number(day_number)
        return self._leaderboard(group_id).daily(day_number)

    def overall_leaderboard(self, group_id: str, user_id: str) -> list[LeaderboardRow]:
        self._require_member(group_id, user_id)
        return self._leaderboard(group_id).overall()

    def streak_leaderboard(
        self,
        group_id: str,
        user_id: str,
        day_number: int | None = None,
    ) -> list[LeaderboardRow]:
        self._require_member(group_id, user_id)
        if day_number is None:
            day_number = self.current_day_number(group_id)
        validate_day_number(day_number)
        return self._leaderboard(group_id).streaks(day_number)

    def rank_of(self, rows: list[LeaderboardRow], user_id: str) -> int | None:
        return rank_of(rows, user_id)

    # --- History & reports ---

    def history(self, group_id: str, user_id: str) -> History:
        member = self._require_member(group_id, user_id)
        group = self._groups.get_group(group_id)
        now = self._clock()
        totals = {s.day_number: s.total_points for s in self._submissions.list_for_user(group_id, user_id)}
        days = [
            HistoryDay(
                day_number=day,
                calendar_date=schedule.day_date(group.start_date, day),
                status=schedule.day_status(
                    group.start_date,
                    group.timezone,
                    group.cutoff_time,
                    day,
                    has_submission=day in totals,
                    is_supervisor=member.is_supervisor,
                    now=now,
                ),
                total_points=totals.get(day, 0),
            )
            for day in range(1, DAY_COUNT + 1)
        ]
        return History(user_id=user_id, days=days, total_points=sum(totals.values()))

    def player_report(self, group_id: str, supervisor_id: str, target_user_id: str) -> PlayerReport:
        self._require_supervisor(group_id, supervisor_id)
        target = self._groups.get_member(group_id, target_user_id)
        if target is None:
            raise NotFoundError(f"User '{target_user_id}' is not a member of this group.")
        submissions = self._submissions.list_for_user(group_id, target_user_id)
        total = sum(s.total_points for s in submissions)
        average = round(total / len(submissions), 1) if submissions else 0.0
        return PlayerReport(
            user_id=target_user_id,
            display_name=target.display_name,
            submissions=submissions,
            total_points=total,
            days_submitted=len(submissions),
            average_points=average,
        )

    # --- Authorization ---

    def _require_member(self, group_id: str, user_id: str) -> GroupMember:
        member = self._groups.get_member(group_id, user_id)
        if member is None:
            logger.warning("User %s is not a member of group %s", user_id, group_id)
            raise AuthorizationError("You are not a member of this group.")
        return member

    def _require_supervisor(self, group_id: str, user_id: str) -> GroupMember:
        member = self._require_member(group_id, user_id)
        if not member.is_supervisor:
            logger.warning("User %s attempted a supervisor action in group %s", user_id, group_id)
            raise AuthorizationError("Only the group supervisor can do this.")
        return member

    def _leaderboard(self, group_id: str) -> Leaderboard:
        return Leaderboard(
            self._groups.get_members(group_id),
            self._submissions.list_for_group(group_id),
        )

    @staticmethod
    def _is_editable(group: Group, day_number: int, now: datetime) -> bool:
        return schedule.is_editable(
            group.start_date,
            group.timezone,
            group.cutoff_time,
            day_number,
            now=now,
        )
