"""Markdown rendering for day content shown to participants.

Supervisors write the hadith, the fiqh statement and the impact task as
markdown. ``get_day`` returns both the source and an HTML fragment per
section, keyed ``hadith``, ``fiqh_statement`` and ``impact_task``. Raw HTML
in the source is escaped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from challenge_app.core.models import DayContent

SECTION_PLACEHOLDERS: dict[str, str] = {
    "hadith": "No hadith has been posted for this day yet.",
    "fiqh_statement": "No fiqh statement has been posted for this day yet.",
    "impact_task": "No impact task has been posted for this day yet.",
}


@dataclass(slots=True)
class DayContentRenderer:
    """Turns a day's markdown sections into HTML fragments."""

    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": False, "breaks": True})
            .enable("table")
            .enable("strikethrough")
        )

    def render_section(self, section: str, markdown_text: str | None) -> str:
        text = (markdown_text or "").strip()
        if not text:
            placeholder = SECTION_PLACEHOLDERS.get(section, "Nothing here yet.")
            return f'<p class="placeholder"><em>{placeholder}</em></p>'
        return self._markdown.render(text)

    def render_day(self, content: DayContent) -> dict[str, str]:
        return {
            "hadith": self.render_section("hadith", content.hadith_text),
            "fiqh_statement": self.render_section("fiqh_statement", content.fiqh_statement_text),
            "impact_task": self.render_section("impact_task", content.impact_task_text),
        }


renderer = DayContentRenderer()
