"""Service for ranking participants by day, overall points and streaks."""

from __future__ import annotations

from dataclasses import dataclass, field
import unicodedata

from challenge_app.core.models import GroupMember, Submission

_TATWEEL = "ـ"


def collation_key(name: str) -> tuple[str, str]:
    """Sort key comparing names the way a reader of the display language expects.

    The primary level ignores case, diacritics (including Arabic harakat and
    hamza carriers) and tatweel; the raw string breaks remaining ties so that
    ordering is total.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(
        ch for ch in decomposed if not unicodedata.combining(ch) and ch != _TATWEEL
    )
    return (base.casefold(), name)


@dataclass(slots=True)
class ParticipantTally:
    """Mutable per-member totals used while building a leaderboard."""

    user_id: str
    display_name: str
    points_by_day: dict[int, int] = field(default_factory=dict)

    @property
    def total_points(self) -> int:
        return sum(self.points_by_day.values())

    def streak(self, current_day: int) -> int:
        """Count consecutive days with a submission, walking back from ``current_day``."""
        count = 0
        day = current_day
        while day >= 1 and day in self.points_by_day:
            count += 1
            day -= 1
        return count


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    """Immutable snapshot returned to consumers."""

    user_id: str
    display_name: str
    value: int
    rank: int


def rank_rows(entries: list[tuple[str, str, int]]) -> list[LeaderboardRow]:
    """Sort ``(user_id, display_name, value)`` rows and attach competition ranks.

    Higher values first, ties by name. A row's rank is one more than the
    number of rows with a strictly greater value.
    """
    ordered = sorted(entries, key=lambda e: (-e[2], collation_key(e[1])))
    rows: list[LeaderboardRow] = []
    for position, (user_id, display_name, value) in enumerate(ordered):
        if position > 0 and value == rows[-1].value:
            rank = rows[-1].rank
        else:
            rank = position + 1
        rows.append(LeaderboardRow(user_id, display_name, value, rank))
    return rows


def rank_of(rows: list[LeaderboardRow], user_id: str) -> int | None:
    return next((row.rank for row in rows if row.user_id == user_id), None)


class Leaderboard:
    """Builds the daily, overall and streak views from one group's data."""

    def __init__(self, members: list[GroupMember], submissions: list[Submission]) -> None:
        self._tallies: dict[str, ParticipantTally] = {
            m.user_id: ParticipantTally(user_id=m.user_id, display_name=m.display_name)
            for m in members
        }
        for submission in submissions:
            tally = self._tallies.get(submission.user_id)
            if tally is None:
                continue
            tally.points_by_day[submission.day_number] = submission.total_points

    def daily(self, day_number: int) -> list[LeaderboardRow]:
        return rank_rows(
            [
                (t.user_id, t.display_name, t.points_by_day.get(day_number, 0))
                for t in self._tallies.values()
            ]
        )

    def overall(self) -> list[LeaderboardRow]:
        return rank_rows(
            [(t.user_id, t.display_name, t.total_points) for t in self._tallies.values()]
        )

    def streaks(self, current_day: int) -> list[LeaderboardRow]:
        return rank_rows(
            [(t.user_id, t.display_name, t.streak(current_day)) for t in self._tallies.values()]
        )
