"""Service for storing submissions keyed by (group, user, day)."""

from __future__ import annotations

from dataclasses import replace
from threading import Lock

from challenge_app.core.models import Submission


class SubmissionRepository:
    """Upsert store: one submission per (group, user, day)."""

    def __init__(self) -> None:
        self._by_key: dict[tuple[str, str, int], Submission] = {}
        self._key_by_id: dict[str, tuple[str, str, int]] = {}
        self._lock = Lock()

    def get(self, group_id: str, user_id: str, day_number: int) -> Submission | None:
        with self._lock:
            submission = self._by_key.get((group_id, user_id, day_number))
            return replace(submission) if submission is not None else None

    def get_by_id(self, submission_id: str) -> Submission | None:
        with self._lock:
            key = self._key_by_id.get(submission_id)
            submission = self._by_key.get(key) if key is not None else None
            return replace(submission) if submission is not None else None

    def upsert(self, submission: Submission) -> Submission:
        """Insert or overwrite by key. An existing row keeps its id and creation time."""
        with self._lock:
            existing = self._by_key.get(submission.key)
            if existing is not None:
                submission = replace(
                    submission,
                    id=existing.id,
                    created_at=existing.created_at,
                )
            stored = replace(submission)
            self._by_key[stored.key] = stored
            self._key_by_id[stored.id] = stored.key
            return replace(stored)

    def list_for_group(self, group_id: str, day_number: int | None = None) -> list[Submission]:
        with self._lock:
            rows = [
                replace(s)
                for s in self._by_key.values()
                if s.group_id == group_id and (day_number is None or s.day_number == day_number)
            ]
        return sorted(rows, key=lambda s: (s.day_number, s.updated_at))

    def list_for_user(self, group_id: str, user_id: str) -> list[Submission]:
        with self._lock:
            rows = [
                replace(s)
                for s in self._by_key.values()
                if s.group_id == group_id and s.user_id == user_id
            ]
        return sorted(rows, key=lambda s: s.day_number)
