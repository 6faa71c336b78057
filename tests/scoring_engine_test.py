"""Scoring engine: submissions, overrides and the audit trail."""

from datetime import datetime, timedelta, timezone

import pytest

from challenge_app.core.errors import ConflictError, NotFoundError, ValidationError
from challenge_app.core.models import RawAnswers
from challenge_app.core.services.day_content_repository import DayContentRepository
from challenge_app.core.services.override_log import OverrideLog
from challenge_app.core.services.scoring_engine import ScoringEngine
from challenge_app.core.services.submission_repository import SubmissionRepository


class StepClock:
    """Returns a later instant on every call."""

    def __init__(self) -> None:
        self._now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


def make_engine():
    contents = DayContentRepository()
    log = OverrideLog()
    engine = ScoringEngine(SubmissionRepository(), contents, log, clock=StepClock())
    return engine, contents, log


# quran 1 + hadith 2 + fiqh 2 (matches default key) + impact 0 = 5
FIVE_POINTS = RawAnswers(quran_points=1, hadith_points=2, fiqh_answer=True, impact_done=False)


def test_submit_day_computes_derived_fields():
    engine, _, _ = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    assert submission.fiqh_points == 2
    assert submission.impact_points == 0
    assert submission.auto_total == 5
    assert submission.override_total is None
    assert submission.total_points == 5


def test_submit_day_uses_stored_answer_key():
    engine, contents, _ = make_engine()
    contents.set_answer_key("g1", 1, False, updated_by="sup")
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    assert submission.fiqh_points == 0
    assert submission.auto_total == 3


def test_resubmission_keeps_identity_and_replaces_raw_fields():
    engine, _, _ = make_engine()
    first = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    second = engine.submit_day("g1", "u1", 1, RawAnswers(3, 3, True, True))
    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.updated_at > first.updated_at
    assert second.auto_total == 10
    assert second.total_points == 10


def test_submit_day_rejects_bad_day_and_points():
    engine, _, _ = make_engine()
    with pytest.raises(ValidationError):
        engine.submit_day("g1", "u1", 31, FIVE_POINTS)
    with pytest.raises(ValidationError):
        engine.submit_day("g1", "u1", 1, RawAnswers(4, 0, True, True))


def test_lenient_submission_clamps_points():
    engine, _, _ = make_engine()
    submission = engine.submit_day("g1", "u1", 1, RawAnswers(5, -1, True, True), strict=False)
    assert (submission.quran_points, submission.hadith_points) == (3, 0)
    assert submission.auto_total == 7


def test_override_round_trip_logs_previous_and_new_values():
    engine, _, log = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)

    updated, entry = engine.apply_override(submission.id, 8, "corrected fiqh entry", "sup")

    assert updated.total_points == 8
    assert updated.override_total == 8
    assert updated.auto_total == 5
    assert entry.previous_override_total is None
    assert entry.new_override_total == 8
    assert entry.previous_total_points == 5
    assert entry.new_total_points == 8
    assert entry.reason == "corrected fiqh entry"
    assert entry.supervisor_id == "sup"
    assert log.list_for_submission(submission.id) == [entry]


def test_clearing_override_reverts_to_auto_total():
    engine, _, _ = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    engine.apply_override(submission.id, 8, "bonus", "sup")

    updated, entry = engine.apply_override(submission.id, None, "bonus withdrawn", "sup")

    assert updated.total_points == 5
    assert updated.override_total is None
    assert entry.previous_override_total == 8
    assert entry.new_override_total is None
    assert entry.previous_total_points == 8
    assert entry.new_total_points == 5


def test_resubmission_preserves_override():
    engine, _, _ = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    engine.apply_override(submission.id, 9, "manual correction", "sup")

    resubmitted = engine.submit_day("g1", "u1", 1, RawAnswers(0, 0, False, False))

    assert resubmitted.auto_total == 0
    assert resubmitted.override_total == 9
    assert resubmitted.total_points == 9


@pytest.mark.parametrize("reason", ["", "   ", None])
def test_override_requires_reason(reason):
    engine, _, log = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    with pytest.raises(ValidationError):
        engine.apply_override(submission.id, 7, reason, "sup")
    assert log.list_for_group("g1") == []


def test_override_rejects_out_of_range_total():
    engine, _, _ = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    with pytest.raises(ValidationError):
        engine.apply_override(submission.id, 11, "too many", "sup")


def test_override_unknown_submission():
    engine, _, _ = make_engine()
    with pytest.raises(NotFoundError):
        engine.apply_override("missing", 5, "reason", "sup")


def test_stale_expected_total_raises_conflict_and_changes_nothing():
    engine, _, log = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    engine.apply_override(submission.id, 9, "first", "sup")

    with pytest.raises(ConflictError) as exc_info:
        engine.apply_override(submission.id, 7, "second", "sup2", expected_total_points=5)

    assert exc_info.value.retryable is True
    assert len(log.list_for_group("g1")) == 1


def test_audit_chain_previous_matches_preceding_total():
    engine, _, log = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    for value in (8, 2, None, 10):
        engine.apply_override(submission.id, value, f"set {value}", "sup")

    entries = list(reversed(log.list_for_group("g1")))
    assert entries[0].previous_total_points == 5
    for before, after in zip(entries, entries[1:]):
        assert after.previous_total_points == before.new_total_points
        assert after.previous_override_total == before.new_override_total


def test_override_log_is_newest_first():
    engine, _, log = make_engine()
    submission = engine.submit_day("g1", "u1", 1, FIVE_POINTS)
    engine.apply_override(submission.id, 1, "first", "sup")
    engine.apply_override(submission.id, 2, "second", "sup")
    assert [e.reason for e in log.list_for_group("g1")] == ["second", "first"]
