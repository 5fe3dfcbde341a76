"""
Markdown Renderer

Converts an analysis section body into display HTML. Supported markdown:

- pipe tables (header row, separator row, body rows)
- ``###`` headings
- lines starting with a status emoji and a "Label:" (promoted to ``<h4>``)
- ``**bold**`` spans
- bullet (``-``/``*``) and numbered (``1.``) lists
- blank-line separated paragraphs

The body comes from a third-party generation service, so it is untrusted:
the raw text is HTML-escaped before any markup is added, and the final
HTML is passed through nh3 with a fixed tag allow-list.
"""

import html
import re
from typing import List, Optional

import nh3


ALLOWED_TAGS = {
    "p", "br", "strong", "em", "ul", "ol", "li", "h3", "h4",
    "table", "thead", "tbody", "tr", "th", "td",
}
ALLOWED_ATTRIBUTES = {"*": {"class"}}

LABEL_EMOJIS = ("🔴", "🟠", "🟡", "🟢", "⚠️", "⚠", "✅", "❌", "💡", "📌", "🎯", "📊", "💰", "🚀", "📈")

BOLD_PATTERN = re.compile(r"\*\*(.+?)\*\*")
H3_PATTERN = re.compile(r"^###\s+(.+)$")
BULLET_PATTERN = re.compile(r"^\s*[-*]\s+(.+)$")
NUMBERED_PATTERN = re.compile(r"^\s*\d+[.)]\s+(.+)$")
TABLE_ROW_PATTERN = re.compile(r"^\s*\|.*\|\s*$")
TABLE_SEPARATOR_PATTERN = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(\|\s*:?-{3,}:?\s*)*\|?\s*$")
EMOJI_LABEL_PATTERN = re.compile(
    r"^(?P<emoji>" + "|".join(re.escape(e) for e in LABEL_EMOJIS) + r")\s*"
    r"(?P<label>[^:]{1,80}):\s*(?P<rest>.*)$"
)


def render_inline(text: str) -> str:
    return BOLD_PATTERN.sub(r"<strong>\1</strong>", text.strip())


def split_row(line: str) -> List[str]:
    cells = line.strip()
    if cells.startswith("|"):
        cells = cells[1:]
    if cells.endswith("|"):
        cells = cells[:-1]
    return [render_inline(cell) for cell in cells.split("|")]


def render_table(header: str, rows: List[str]) -> str:
    head = "".join(f"<th>{cell}</th>" for cell in split_row(header))
    body = "".join(
        "<tr>" + "".join(f"<td>{cell}</td>" for cell in split_row(row)) + "</tr>"
        for row in rows
    )
    return (
        '<table class="analysis-table">'
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{body}</tbody>"
        "</table>"
    )


class _BlockWriter:
    """Accumulates output blocks plus the open paragraph or list."""

    def __init__(self):
        self.blocks: List[str] = []
        self.paragraph: List[str] = []
        self.list_tag: Optional[str] = None
        self.list_items: List[str] = []

    def close_paragraph(self) -> None:
        if self.paragraph:
            self.blocks.append(f"<p>{' '.join(self.paragraph)}</p>")
            self.paragraph = []

    def close_list(self) -> None:
        if self.list_tag:
            items = "".join(f"<li>{item}</li>" for item in self.list_items)
            self.blocks.append(f"<{self.list_tag}>{items}</{self.list_tag}>")
            self.list_tag, self.list_items = None, []

    def close_all(self) -> None:
        self.close_paragraph()
        self.close_list()

    def add_block(self, block: str) -> None:
        self.close_all()
        self.blocks.append(block)

    def add_list_item(self, tag: str, item: str) -> None:
        self.close_paragraph()
        if self.list_tag != tag:
            self.close_list()
            self.list_tag = tag
        self.list_items.append(item)

    def add_text(self, text: str) -> None:
        self.close_list()
        self.paragraph.append(text)


def render_markdown(body: str) -> str:
    """
    Render a section body to sanitized HTML.

    Args:
        body: Raw markdown text from the generation service.

    Returns:
        HTML safe to insert into the page.
    """
    lines = html.escape(body or "").splitlines()
    out = _BlockWriter()

    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if (
            TABLE_ROW_PATTERN.match(line)
            and i + 1 < len(lines)
            and TABLE_SEPARATOR_PATTERN.match(lines[i + 1])
        ):
            rows: List[str] = []
            j = i + 2
            while j < len(lines) and TABLE_ROW_PATTERN.match(lines[j]):
                rows.append(lines[j])
                j += 1
            out.add_block(render_table(line, rows))
            i = j
            continue

        if not stripped:
            out.close_all()
        elif H3_PATTERN.match(stripped):
            out.add_block(f"<h3>{render_inline(H3_PATTERN.match(stripped).group(1))}</h3>")
        elif EMOJI_LABEL_PATTERN.match(stripped):
            match = EMOJI_LABEL_PATTERN.match(stripped)
            label = render_inline(f"{match.group('emoji')} {match.group('label')}:")
            out.add_block(f"<h4>{label}</h4>")
            if match.group("rest").strip():
                out.add_text(render_inline(match.group("rest")))
        elif BULLET_PATTERN.match(line):
            out.add_list_item("ul", render_inline(BULLET_PATTERN.match(line).group(1)))
        elif NUMBERED_PATTERN.match(line):
            out.add_list_item("ol", render_inline(NUMBERED_PATTERN.match(line).group(1)))
        else:
            out.add_text(render_inline(stripped))
        i += 1

    out.close_all()
    return nh3.clean("\n".join(out.blocks), tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)
