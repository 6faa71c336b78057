"""Day template files: shape checks and error reporting."""

import json

import pytest

from challenge_app.core.day_template_importer import (
    DayTemplateImportError,
    load_day_templates_from_file,
    parse_day_templates,
)
from challenge_app.core.errors import ValidationError


def _records():
    return [
        {
            "dayNumber": day,
            "hadithText": f"  Hadith {day}  ",
            "fiqhStatementText": f"Statement {day}",
            "impactTaskText": f"Task {day}",
            "correctAnswer": day != 4,
        }
        for day in range(30, 0, -1)
    ]


def test_parse_orders_by_day_and_strips_text():
    templates = parse_day_templates(_records())
    assert [t.day_number for t in templates] == list(range(1, 31))
    assert templates[0].hadith_text == "Hadith 1"
    assert templates[3].correct_answer is False


def test_wrong_number_of_days():
    with pytest.raises(DayTemplateImportError, match="exactly 30"):
        parse_day_templates(_records()[:29])


def test_duplicate_day():
    records = _records()
    records[0]["dayNumber"] = 1
    with pytest.raises(DayTemplateImportError, match="more than once"):
        parse_day_templates(records)


@pytest.mark.parametrize(
    "field, value",
    [("dayNumber", 31), ("dayNumber", "3"), ("hadithText", ""), ("correctAnswer", "true")],
)
def test_invalid_fields_are_reported(field, value):
    records = _records()
    records[5][field] = value
    with pytest.raises(DayTemplateImportError, match=f"Entry 6: {field}"):
        parse_day_templates(records)


def test_import_errors_are_validation_errors():
    with pytest.raises(ValidationError):
        parse_day_templates({"dayNumber": 1})


def test_load_from_file(tmp_path):
    path = tmp_path / "days.json"
    path.write_text(json.dumps(_records()), encoding="utf-8")
    imported = load_day_templates_from_file(path)
    assert imported.source_path == path
    assert len(imported.templates) == 30


def test_load_invalid_json(tmp_path):
    path = tmp_path / "days.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(DayTemplateImportError, match="not valid JSON"):
        load_day_templates_from_file(path)
