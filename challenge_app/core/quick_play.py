"""Offline single-device variant of the challenge.

Quick play keeps everything in one JSON document: player names, the 30 day
templates (including each day's answer key) and every saved entry. Stored
documents may come from older versions, so loading always goes through
``upgrade_quick_state`` which maps any known shape onto the current one and
falls back to defaults for anything unusable. Scoring uses the lenient path
of ``compute_auto_total``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import json
import logging
from pathlib import Path
from typing import Iterable

from challenge_app.constants.challenge_constants import (
    DAY_COUNT,
    DEFAULT_CORRECT_ANSWER,
    MAX_DAILY_POINTS,
    MAX_HADITH_POINTS,
    MAX_PLAYERS,
    MAX_QURAN_POINTS,
    MIN_PLAYERS,
)
from challenge_app.core.errors import ValidationError
from challenge_app.core.models import DayTemplate, RawAnswers
from challenge_app.core.scoring import clamp, compute_auto_total, validate_day_number
from challenge_app.core.services.leaderboard import LeaderboardRow, rank_rows

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME = "Daily Challenge"
DEFAULT_PLAYERS = [f"Participant {n}" for n in range(1, 8)]


@dataclass(frozen=True, slots=True)
class QuickEntry:
    """A saved quick-play result for one player and day."""

    quran_points: int
    hadith_points: int
    fiqh_answer: bool
    impact_done: bool
    total: int


@dataclass(slots=True)
class QuickPlayState:
    """Current normalized shape of a quick-play document."""

    group_name: str = DEFAULT_GROUP_NAME
    players: list[str] = field(default_factory=lambda: list(DEFAULT_PLAYERS))
    day_templates: list[DayTemplate] = field(default_factory=lambda: default_day_templates())
    entries: dict[str, dict[int, QuickEntry]] = field(default_factory=dict)

    def to_payload(self) -> dict[str, object]:
        return {
            "groupName": self.group_name,
            "players": list(self.players),
            "dayTemplates": [
                {
                    "dayNumber": t.day_number,
                    "hadithText": t.hadith_text,
                    "fiqhStatementText": t.fiqh_statement_text,
                    "impactTaskText": t.impact_task_text,
                    "correctAnswer": t.correct_answer,
                }
                for t in self.day_templates
            ],
            "entries": {
                player: {
                    str(day): {
                        "quranPoints": e.quran_points,
                        "hadithPoints": e.hadith_points,
                        "fiqhAnswer": e.fiqh_answer,
                        "impactDone": e.impact_done,
                        "total": e.total,
                    }
                    for day, e in sorted(days.items())
                }
                for player, days in self.entries.items()
            },
        }


def default_day_templates() -> list[DayTemplate]:
    return [
        DayTemplate(
            day_number=day,
            hadith_text=f"Day {day} hadith",
            fiqh_statement_text=f"Day {day} fiqh statement",
            impact_task_text=f"Day {day} impact task",
            correct_answer=DEFAULT_CORRECT_ANSWER,
        )
        for day in range(1, DAY_COUNT + 1)
    ]


def upgrade_quick_state(raw: object) -> QuickPlayState:
    """Map a stored document of any known version onto ``QuickPlayState``.

    Older documents kept answer keys in a separate ``correctAnswers`` map
    keyed by day; those values win over the templates they are merged into.
    """
    if not isinstance(raw, dict):
        return QuickPlayState()

    group_name = raw.get("groupName")
    return QuickPlayState(
        group_name=group_name if isinstance(group_name, str) and group_name else DEFAULT_GROUP_NAME,
        players=_normalize_players(raw.get("players")),
        day_templates=_merge_day_templates(raw.get("dayTemplates"), raw.get("correctAnswers")),
        entries=_normalize_entries(raw.get("entries")),
    )


def _to_int(value: object) -> int:
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return 0


def _normalize_players(raw: object) -> list[str]:
    if not isinstance(raw, list):
        return list(DEFAULT_PLAYERS)
    names = _unique_names(item.strip() for item in raw if isinstance(item, str) and item.strip())
    names = names[:MAX_PLAYERS]
    return names if len(names) >= MIN_PLAYERS else list(DEFAULT_PLAYERS)


def _unique_names(names: Iterable[str]) -> list[str]:
    """Keep the first spelling of each name, comparing case-insensitively."""
    seen: set[str] = set()
    unique = []
    for name in names:
        folded = name.casefold()
        if folded not in seen:
            seen.add(folded)
            unique.append(name)
    return unique


def _build_day_templates(raw: object) -> list[DayTemplate]:
    by_day = {t.day_number: t for t in default_day_templates()}
    if isinstance(raw, list):
        for row in raw:
            if not isinstance(row, dict):
                continue
            day = clamp(_to_int(row.get("dayNumber")), 1, DAY_COUNT)
            base = by_day[day]
            by_day[day] = DayTemplate(
                day_number=day,
                hadith_text=_text_or(row.get("hadithText"), base.hadith_text),
                fiqh_statement_text=_text_or(row.get("fiqhStatementText"), base.fiqh_statement_text),
                impact_task_text=_text_or(row.get("impactTaskText"), base.impact_task_text),
                correct_answer=(
                    row["correctAnswer"]
                    if isinstance(row.get("correctAnswer"), bool)
                    else base.correct_answer
                ),
            )
    return [by_day[day] for day in range(1, DAY_COUNT + 1)]


def _merge_day_templates(raw_templates: object, legacy_answers: object) -> list[DayTemplate]:
    templates = _build_day_templates(raw_templates)
    if not isinstance(legacy_answers, dict):
        return templates
    merged = []
    for template in templates:
        answer = legacy_answers.get(str(template.day_number))
        merged.append(replace(template, correct_answer=answer) if isinstance(answer, bool) else template)
    return merged


def _normalize_entries(raw: object) -> dict[str, dict[int, QuickEntry]]:
    if not isinstance(raw, dict):
        return {}
    result: dict[str, dict[int, QuickEntry]] = {}
    for player, days in raw.items():
        if not isinstance(days, dict):
            continue
        day_entries: dict[int, QuickEntry] = {}
        for day_key, value in days.items():
            if not isinstance(value, dict):
                continue
            day = clamp(_to_int(day_key), 1, DAY_COUNT)
            day_entries[day] = QuickEntry(
                quran_points=clamp(_to_int(value.get("quranPoints")), 0, MAX_QURAN_POINTS),
                hadith_points=clamp(_to_int(value.get("hadithPoints")), 0, MAX_HADITH_POINTS),
                fiqh_answer=bool(value.get("fiqhAnswer")),
                impact_done=bool(value.get("impactDone")),
                total=clamp(_to_int(value.get("total")), 0, MAX_DAILY_POINTS),
            )
        if day_entries:
            result[str(player)] = day_entries
    return result


def _text_or(value: object, fallback: str) -> str:
    return value if isinstance(value, str) and value else fallback


class QuickPlayGame:
    """Operations of the offline game over a ``QuickPlayState``."""

    def __init__(self, state: QuickPlayState | None = None) -> None:
        self._state = state if state is not None else QuickPlayState()

    @property
    def state(self) -> QuickPlayState:
        return self._state

    @classmethod
    def load(cls, file_path: Path) -> "QuickPlayGame":
        """Load a saved document; unreadable files start a fresh game."""
        if not file_path.exists():
            return cls()
        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Could not read quick play state from %s; starting fresh", file_path)
            return cls()
        return cls(upgrade_quick_state(raw))

    def save(self, file_path: Path) -> None:
        file_path = file_path.resolve()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        document = json.dumps(self._state.to_payload(), ensure_ascii=False, indent=2)
        file_path.write_text(document, encoding="utf-8")

    def reset(self) -> None:
        self._state = QuickPlayState()

    def save_players(self, names: list[str]) -> list[str]:
        cleaned = [name.strip() for name in names if name.strip()]
        if len(_unique_names(cleaned)) != len(cleaned):
            raise ValidationError("Participant names must be unique.")
        cleaned = cleaned[:MAX_PLAYERS]
        if len(cleaned) < MIN_PLAYERS:
            raise ValidationError(f"Enter at least {MIN_PLAYERS} participants.")
        self._state.players = cleaned
        return list(cleaned)

    def get_template(self, day_number: int) -> DayTemplate:
        validate_day_number(day_number)
        return self._state.day_templates[day_number - 1]

    def save_answer_key(self, day_number: int, correct_answer: bool) -> DayTemplate:
        template = replace(self.get_template(day_number), correct_answer=bool(correct_answer))
        self._state.day_templates[day_number - 1] = template
        return template

    def projected_total(self, day_number: int, raw: RawAnswers) -> int:
        return compute_auto_total(raw, self.get_template(day_number).correct_answer)

    def save_entry(self, player: str, day_number: int, raw: RawAnswers) -> QuickEntry:
        if player not in self._state.players:
            raise ValidationError(f"'{player}' is not a participant in this game.")
        total = self.projected_total(day_number, raw)
        entry = QuickEntry(
            quran_points=clamp(raw.quran_points, 0, MAX_QURAN_POINTS),
            hadith_points=clamp(raw.hadith_points, 0, MAX_HADITH_POINTS),
            fiqh_answer=bool(raw.fiqh_answer),
            impact_done=bool(raw.impact_done),
            total=total,
        )
        self._state.entries.setdefault(player, {})[day_number] = entry
        return entry

    def get_entry(self, player: str, day_number: int) -> QuickEntry | None:
        return self._state.entries.get(player, {}).get(day_number)

    def daily_rows(self, day_number: int) -> list[LeaderboardRow]:
        return rank_rows(
            [
                (name, name, self._state.entries.get(name, {}).get(day_number, _NO_ENTRY).total)
                for name in self._state.players
            ]
        )

    def overall_rows(self) -> list[LeaderboardRow]:
        return rank_rows(
            [
                (name, name, sum(e.total for e in self._state.entries.get(name, {}).values()))
                for name in self._state.players
            ]
        )


_NO_ENTRY = QuickEntry(quran_points=0, hadith_points=0, fiqh_answer=False, impact_done=False, total=0)
