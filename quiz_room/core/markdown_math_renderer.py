"""Markdown + LaTeX rendering helpers for question text and tables.

Question text is authored as markdown with ``$...$`` math. The server turns
it into HTML fragments and leaves the math delimiters untouched so MathJax
can typeset them in the browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from quiz_room.core.models import TableData


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip() or ""
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_table(self, table: TableData | None) -> str | None:
        """Render a reference table, or ``None`` when it has nothing to show."""

        if table is None or not table.has_content():
            return None
        width = max([len(table.headers)] + [len(row) for row in table.rows])
        if width == 0:
            return None
        headers = _pad(table.headers, width)
        lines = [
            _markdown_row(headers),
            _markdown_row(["---"] * width),
        ]
        lines.extend(_markdown_row(_pad(row, width)) for row in table.rows)
        return self._markdown.render("\n".join(lines))


def _pad(cells: list[str], width: int) -> list[str]:
    return list(cells) + [""] * (width - len(cells))


def _markdown_row(cells: list[str]) -> str:
    escaped = [cell.replace("|", "\\|").replace("\n", " ").strip() or " " for cell in cells]
    return "| " + " | ".join(escaped) + " |"


renderer = MarkdownMathRenderer()
# Shared instance; MarkdownIt is safe for concurrent read-only renders.
