"""Scoring engine: day submissions and supervisor overrides with an audit trail.

The engine trusts its caller's authorization decision. Each operation runs
under a single lock so that an override's read of the previous values, the
submission write and the audit append happen as one unit, and a day
submission always sees the override state current at the time it writes.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import logging
from threading import Lock
from typing import Callable
from uuid import uuid4

from challenge_app.core.errors import ConflictError, NotFoundError, ValidationError
from challenge_app.core.models import OverrideLogEntry, RawAnswers, Submission
from challenge_app.core.scoring import (
    compute_auto_total,
    compute_fiqh_points,
    compute_impact_points,
    normalize_raw,
    resolve_total,
    validate_day_number,
    validate_override_total,
)
from challenge_app.core.services.day_content_repository import DayContentRepository
from challenge_app.core.services.override_log import OverrideLog
from challenge_app.core.services.submission_repository import SubmissionRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoringEngine:
    """Computes, stores and overrides per-day scores."""

    def __init__(
        self,
        submissions: SubmissionRepository,
        day_contents: DayContentRepository,
        override_log: OverrideLog,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._lock = Lock()
        self._submissions = submissions
        self._day_contents = day_contents
        self._override_log = override_log
        self._clock = clock

    def submit_day(
        self,
        group_id: str,
        user_id: str,
        day_number: int,
        raw: RawAnswers,
        strict: bool = True,
    ) -> Submission:
        """Create or update the caller's submission for a day.

        Raw fields and the auto total are replaced; an existing override is
        kept and still decides ``total_points``.
        """
        validate_day_number(day_number)
        normalized = normalize_raw(raw, strict=strict)

        with self._lock:
            key = self._day_contents.get_answer_key(group_id, day_number)
            correct_answer = key.correct_answer if key is not None else None
            auto_total = compute_auto_total(normalized, correct_answer)

            existing = self._submissions.get(group_id, user_id, day_number)
            override_total = existing.override_total if existing is not None else None
            now = self._clock()

            submission = Submission(
                id=existing.id if existing is not None else uuid4().hex,
                group_id=group_id,
                user_id=user_id,
                day_number=day_number,
                quran_points=normalized.quran_points,
                hadith_points=normalized.hadith_points,
                fiqh_answer=normalized.fiqh_answer,
                impact_done=normalized.impact_done,
                fiqh_points=compute_fiqh_points(normalized.fiqh_answer, correct_answer),
                impact_points=compute_impact_points(normalized.impact_done),
                auto_total=auto_total,
                override_total=override_total,
                total_points=resolve_total(auto_total, override_total),
                created_at=existing.created_at if existing is not None else now,
                updated_at=now,
            )
            stored = self._submissions.upsert(submission)

        logger.debug(
            "Saved day %s for user %s in group %s: auto=%s total=%s",
            day_number,
            user_id,
            group_id,
            stored.auto_total,
            stored.total_points,
        )
        return stored

    def apply_override(
        self,
        submission_id: str,
        new_override_total: int | None,
        reason: str,
        supervisor_id: str,
        expected_total_points: int | None = None,
    ) -> tuple[Submission, OverrideLogEntry]:
        """Set or clear a submission's override and record it in the audit log.

        ``new_override_total=None`` reverts the submission to auto-scoring.
        When ``expected_total_points`` is given it must match the stored total,
        otherwise ``ConflictError`` is raised and nothing changes.
        """
        validate_override_total(new_override_total)
        cleaned_reason = (reason or "").strip()
        if not cleaned_reason:
            raise ValidationError("A reason is required for every override.")

        with self._lock:
            current = self._submissions.get_by_id(submission_id)
            if current is None:
                raise NotFoundError(f"Submission '{submission_id}' does not exist.")
            if expected_total_points is not None and expected_total_points != current.total_points:
                raise ConflictError(
                    "The submission changed since it was loaded; reload and try again."
                )

            now = self._clock()
            updated = self._submissions.upsert(
                replace(
                    current,
                    override_total=new_override_total,
                    total_points=resolve_total(current.auto_total, new_override_total),
                    updated_at=now,
                )
            )
            entry = self._override_log.append(
                OverrideLogEntry(
                    id=uuid4().hex,
                    submission_id=current.id,
                    group_id=current.group_id,
                    supervisor_id=supervisor_id,
                    previous_override_total=current.override_total,
                    new_override_total=new_override_total,
                    previous_total_points=current.total_points,
                    new_total_points=updated.total_points,
                    reason=cleaned_reason,
                    created_at=now,
                )
            )

        logger.info(
            "Supervisor %s overrode submission %s: %s -> %s (%s)",
            supervisor_id,
            submission_id,
            entry.previous_total_points,
            entry.new_total_points,
            cleaned_reason,
        )
        return updated, entry
