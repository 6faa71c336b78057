"""Utilities for importing the 30 day templates used to seed a group.

File format: a JSON array with exactly one object per day::

    [
      {
        "dayNumber": 1,
        "hadithText": "...",
        "fiqhStatementText": "...",
        "impactTaskText": "...",
        "correctAnswer": true
      },
      ...
    ]

Every day from 1 to 30 must appear once and every text must be non-empty.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError

from challenge_app.constants.challenge_constants import DAY_COUNT
from challenge_app.core.errors import ValidationError
from challenge_app.core.models import DayTemplate


class DayTemplateImportError(ValidationError):
    """Raised when a day template file cannot be parsed."""


class _DayTemplateRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    day_number: int = Field(alias="dayNumber", ge=1, le=DAY_COUNT, strict=True)
    hadith_text: str = Field(alias="hadithText", min_length=1)
    fiqh_statement_text: str = Field(alias="fiqhStatementText", min_length=1)
    impact_task_text: str = Field(alias="impactTaskText", min_length=1)
    correct_answer: StrictBool = Field(alias="correctAnswer")


@dataclass(slots=True)
class ImportedTemplates:
    """Container for imported templates and where they came from."""

    source_path: Path
    templates: list[DayTemplate]


def load_day_templates_from_file(file_path: Path) -> ImportedTemplates:
    text = file_path.read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DayTemplateImportError(f"Template file is not valid JSON: {exc.msg}.") from exc
    return ImportedTemplates(source_path=file_path, templates=parse_day_templates(payload))


def parse_day_templates(payload: object) -> list[DayTemplate]:
    """Validate decoded JSON and return templates ordered by day number."""
    if not isinstance(payload, list):
        raise DayTemplateImportError("Template file must contain a JSON array.")
    if len(payload) != DAY_COUNT:
        raise DayTemplateImportError(
            f"Template file must define exactly {DAY_COUNT} days, found {len(payload)}."
        )

    templates: dict[int, DayTemplate] = {}
    for index, item in enumerate(payload, start=1):
        try:
            record = _DayTemplateRecord.model_validate(item)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "entry"
            raise DayTemplateImportError(
                f"Entry {index}: {location}: {first['msg']}"
            ) from exc
        if record.day_number in templates:
            raise DayTemplateImportError(f"Day {record.day_number} is defined more than once.")
        templates[record.day_number] = DayTemplate(
            day_number=record.day_number,
            hadith_text=record.hadith_text.strip(),
            fiqh_statement_text=record.fiqh_statement_text.strip(),
            impact_task_text=record.impact_task_text.strip(),
            correct_answer=record.correct_answer,
        )

    return [templates[day] for day in sorted(templates)]
