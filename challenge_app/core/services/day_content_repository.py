"""Service for per-day content, answer keys and day posts."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock

from challenge_app.core.models import DayAnswerKey, DayContent, DayPost


class DayContentRepository:
    """Holds what supervisors edit for each (group, day)."""

    def __init__(self) -> None:
        self._contents: dict[tuple[str, int], DayContent] = {}
        self._answer_keys: dict[tuple[str, int], DayAnswerKey] = {}
        self._posts: dict[tuple[str, int], DayPost] = {}
        self._lock = Lock()

    def get_content(self, group_id: str, day_number: int) -> DayContent:
        """Return the day's content; missing content comes back with empty texts."""
        with self._lock:
            content = self._contents.get((group_id, day_number))
        if content is None:
            return DayContent(group_id=group_id, day_number=day_number)
        return replace(content)

    def save_content(
        self,
        group_id: str,
        day_number: int,
        hadith_text: str,
        fiqh_statement_text: str,
        impact_task_text: str,
        updated_by: str,
    ) -> DayContent:
        content = DayContent(
            group_id=group_id,
            day_number=day_number,
            hadith_text=hadith_text.strip(),
            fiqh_statement_text=fiqh_statement_text.strip(),
            impact_task_text=impact_task_text.strip(),
            updated_by=updated_by,
            updated_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._contents[(group_id, day_number)] = content
        return replace(content)

    def get_answer_key(self, group_id: str, day_number: int) -> DayAnswerKey | None:
        """Return the stored key, or None when no supervisor has set one."""
        with self._lock:
            key = self._answer_keys.get((group_id, day_number))
        return replace(key) if key is not None else None

    def set_answer_key(
        self,
        group_id: str,
        day_number: int,
        correct_answer: bool,
        updated_by: str,
    ) -> DayAnswerKey:
        key = DayAnswerKey(
            group_id=group_id,
            day_number=day_number,
            correct_answer=bool(correct_answer),
            updated_by=updated_by,
            updated_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._answer_keys[(group_id, day_number)] = key
        return replace(key)

    def get_post(self, group_id: str, day_number: int) -> DayPost | None:
        with self._lock:
            post = self._posts.get((group_id, day_number))
        return replace(post) if post is not None else None

    def post_day(self, group_id: str, day_number: int, posted_by: str) -> DayPost:
        post = DayPost(
            group_id=group_id,
            day_number=day_number,
            posted_by=posted_by,
            posted_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._posts[(group_id, day_number)] = post
        return replace(post)
