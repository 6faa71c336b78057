"""Append-only audit log of supervisor score overrides."""

from __future__ import annotations

from threading import Lock

from challenge_app.constants.challenge_constants import OVERRIDE_LOG_PAGE_SIZE
from challenge_app.core.models import OverrideLogEntry


class OverrideLog:
    """Keeps override entries in creation order; entries are frozen."""

    def __init__(self) -> None:
        self._entries: list[OverrideLogEntry] = []
        self._lock = Lock()

    def append(self, entry: OverrideLogEntry) -> OverrideLogEntry:
        with self._lock:
            self._entries.append(entry)
        return entry

    def list_for_group(
        self,
        group_id: str,
        limit: int | None = OVERRIDE_LOG_PAGE_SIZE,
    ) -> list[OverrideLogEntry]:
        """Return the group's entries, most recent first."""
        with self._lock:
            rows = [e for e in reversed(self._entries) if e.group_id == group_id]
        return rows if limit is None else rows[:limit]

    def list_for_submission(self, submission_id: str) -> list[OverrideLogEntry]:
        with self._lock:
            return [e for e in reversed(self._entries) if e.submission_id == submission_id]
