"""Pure scoring rules for a challenge day.

Every derived value of a submission (fiqh points, impact points, auto total
and the displayed total) is computed here so that the engine, leaderboards,
reports and the quick-play game never disagree about a score.

Two input paths exist:

* lenient (default): quran/hadith points outside ``0..3`` are clamped before
  summing. This tolerates stale or partial client state, e.g. the local
  quick-play game.
* strict: out-of-range or non-integer points raise ``ValidationError``. The
  authenticated submission path uses this.
"""

from __future__ import annotations

from challenge_app.constants.challenge_constants import (
    DAY_COUNT,
    DEFAULT_CORRECT_ANSWER,
    FIQH_CORRECT_POINTS,
    IMPACT_DONE_POINTS,
    MAX_DAILY_POINTS,
    MAX_HADITH_POINTS,
    MAX_QURAN_POINTS,
)
from challenge_app.core.errors import ValidationError
from challenge_app.core.models import RawAnswers


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def resolve_correct_answer(correct_answer: bool | None) -> bool:
    """Return the effective answer key, applying the default when unset."""
    if correct_answer is None:
        return DEFAULT_CORRECT_ANSWER
    return correct_answer


def compute_fiqh_points(fiqh_answer: bool, correct_answer: bool | None) -> int:
    return FIQH_CORRECT_POINTS if fiqh_answer == resolve_correct_answer(correct_answer) else 0


def compute_impact_points(impact_done: bool) -> int:
    return IMPACT_DONE_POINTS if impact_done else 0


def normalize_raw(raw: RawAnswers, strict: bool = False) -> RawAnswers:
    """Return raw answers with points inside their declared ranges."""
    if strict:
        validate_raw(raw)
        return raw
    return RawAnswers(
        quran_points=clamp(raw.quran_points, 0, MAX_QURAN_POINTS),
        hadith_points=clamp(raw.hadith_points, 0, MAX_HADITH_POINTS),
        fiqh_answer=bool(raw.fiqh_answer),
        impact_done=bool(raw.impact_done),
    )


def validate_raw(raw: RawAnswers) -> None:
    """Raise ``ValidationError`` unless every raw input has its declared type and range."""
    _validate_points("quran_points", raw.quran_points, MAX_QURAN_POINTS)
    _validate_points("hadith_points", raw.hadith_points, MAX_HADITH_POINTS)
    if not isinstance(raw.fiqh_answer, bool):
        raise ValidationError("fiqh_answer must be true or false.")
    if not isinstance(raw.impact_done, bool):
        raise ValidationError("impact_done must be true or false.")


def validate_day_number(day_number: int) -> int:
    if isinstance(day_number, bool) or not isinstance(day_number, int):
        raise ValidationError("Day number must be an integer.")
    if not 1 <= day_number <= DAY_COUNT:
        raise ValidationError(f"Day number must be between 1 and {DAY_COUNT}.")
    return day_number


def validate_override_total(override_total: int | None) -> int | None:
    if override_total is None:
        return None
    if isinstance(override_total, bool) or not isinstance(override_total, int):
        raise ValidationError("Override total must be an integer or null.")
    if not 0 <= override_total <= MAX_DAILY_POINTS:
        raise ValidationError(
            f"Override total must be between 0 and {MAX_DAILY_POINTS}, or null to clear it."
        )
    return override_total


def compute_auto_total(
    raw: RawAnswers,
    correct_answer: bool | None = None,
    strict: bool = False,
) -> int:
    """Score one day from raw inputs and the day's answer key.

    ``correct_answer=None`` means the supervisor never set the key. The
    result is always within ``0..10``.
    """
    normalized = normalize_raw(raw, strict=strict)
    total = (
        normalized.quran_points
        + normalized.hadith_points
        + compute_fiqh_points(normalized.fiqh_answer, correct_answer)
        + compute_impact_points(normalized.impact_done)
    )
    return clamp(total, 0, MAX_DAILY_POINTS)


def resolve_total(auto_total: int, override_total: int | None) -> int:
    """Return the total shown and ranked everywhere: the override when present."""
    if override_total is not None:
        return override_total
    return auto_total


def _validate_points(field_name: str, value: int, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer.")
    if not 0 <= value <= maximum:
        raise ValidationError(f"{field_name} must be between 0 and {maximum}.")
