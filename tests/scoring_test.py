"""Pure scoring rules: bounds, clamping, fiqh/impact points and override precedence."""

import itertools

import pytest

from challenge_app.core.errors import ValidationError
from challenge_app.core.models import RawAnswers
from challenge_app.core.scoring import (
    compute_auto_total,
    compute_fiqh_points,
    compute_impact_points,
    resolve_correct_answer,
    resolve_total,
    validate_day_number,
    validate_override_total,
)


def test_auto_total_stays_within_bounds_for_valid_inputs():
    for quran, hadith, fiqh, impact, key in itertools.product(
        range(4), range(4), (True, False), (True, False), (True, False, None)
    ):
        total = compute_auto_total(RawAnswers(quran, hadith, fiqh, impact), key)
        assert 0 <= total <= 10


def test_perfect_day_scores_ten():
    assert compute_auto_total(RawAnswers(3, 3, False, True), correct_answer=False) == 10


def test_out_of_range_points_are_clamped_before_summing():
    raw = RawAnswers(quran_points=5, hadith_points=-1, fiqh_answer=True, impact_done=True)
    assert compute_auto_total(raw, True) == 7
    assert compute_auto_total(raw, True) == compute_auto_total(RawAnswers(3, 0, True, True), True)


def test_fiqh_points_depend_on_answer_key():
    raw = RawAnswers(quran_points=0, hadith_points=0, fiqh_answer=True, impact_done=False)
    assert compute_auto_total(raw, correct_answer=True) == 2
    assert compute_auto_total(raw, correct_answer=False) == 0


def test_unset_answer_key_defaults_to_true():
    assert resolve_correct_answer(None) is True
    assert compute_fiqh_points(True, None) == 2
    assert compute_fiqh_points(False, None) == 0


def test_impact_points():
    assert compute_impact_points(True) == 2
    assert compute_impact_points(False) == 0


def test_strict_mode_rejects_out_of_range_points():
    with pytest.raises(ValidationError):
        compute_auto_total(RawAnswers(4, 0, True, True), True, strict=True)
    with pytest.raises(ValidationError):
        compute_auto_total(RawAnswers(0, -1, True, True), True, strict=True)


def test_strict_mode_rejects_booleans_as_points():
    with pytest.raises(ValidationError):
        compute_auto_total(RawAnswers(True, 0, True, True), True, strict=True)


def test_override_takes_precedence():
    assert resolve_total(6, 9) == 9
    assert resolve_total(6, None) == 6
    assert resolve_total(6, 0) == 0


@pytest.mark.parametrize("day", [0, 31, -3])
def test_day_number_out_of_range(day):
    with pytest.raises(ValidationError):
        validate_day_number(day)


@pytest.mark.parametrize("value", [-1, 11, 2.5])
def test_override_total_out_of_range(value):
    with pytest.raises(ValidationError):
        validate_override_total(value)


def test_override_total_accepts_null_and_bounds():
    assert validate_override_total(None) is None
    assert validate_override_total(0) == 0
    assert validate_override_total(10) == 10
