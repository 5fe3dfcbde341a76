"""
Section Consolidator

Splits free-text analysis into titled sections and folds the varying
headings the generation service produces into a fixed taxonomy:

    Overview, Business Impact, Recommendations, Benchmark, Grade, Success Metrics

Pass 1 (parse_sections): scan lines. A ``## Title`` line or a standalone
``**Title**`` line starts a new section. Text before the first heading goes
into an implicit "Overview". Sections whose body is blank are dropped.

Pass 2 (consolidate_sections): match each lowercased title against the
ordered substring rules in MERGE_RULES. Matched sections are merged into
their canonical section; sections titled exactly with the canonical name
come first, then aliases in first-seen order, each alias body introduced by
a ``### <original title>`` line. Unmatched sections follow the canonical
ones in first-seen order.

The rules are plain ordered substring checks. The upstream text is not
under our control, so the rule list is kept explicit and tested.
"""

import re
from typing import Dict, List, Optional, Tuple

from hubauditor.models.enums import CanonicalSection
from hubauditor.models.schemas import AnalysisSection


H2_PATTERN = re.compile(r"^##\s+(.+)$")
BOLD_LINE_PATTERN = re.compile(r"^\*\*([^*]+)\*\*:?$")

# First matching rule wins; order matters ("risk" would otherwise claim
# "Recommendations to reduce risk")
MERGE_RULES: List[Tuple[CanonicalSection, Tuple[str, ...]]] = [
    (CanonicalSection.SUCCESS_METRICS, ("success metric", "kpi")),
    (CanonicalSection.RECOMMENDATIONS, ("recommend", "action item", "action plan",
                                        "next step", "quick win")),
    (CanonicalSection.BUSINESS_IMPACT, ("business impact", "impact", "cost", "risk")),
    (CanonicalSection.BENCHMARK, ("benchmark", "industry comparison", "industry standard")),
    (CanonicalSection.GRADE, ("grade", "score", "rating")),
    (CanonicalSection.OVERVIEW, ("overview", "summary", "key finding", "findings",
                                 "root cause", "assessment")),
]

SECTION_ICONS: List[Tuple[str, str]] = [
    ("overview", "📊"),
    ("key findings", "🔍"),
    ("findings", "🔍"),
    ("business impact", "💰"),
    ("impact", "💰"),
    ("recommendations", "✅"),
    ("action items", "✅"),
    ("next steps", "🚀"),
    ("benchmark", "📈"),
    ("grade", "🏆"),
    ("success metrics", "🎯"),
    ("summary", "📝"),
    ("conclusion", "🎯"),
]
DEFAULT_ICON: str = "📄"


def clean_title(raw: str) -> str:
    title = raw.replace("**", "").strip()
    return title.rstrip(":").strip()


def match_heading(line: str) -> Optional[str]:
    """Return the section title if the line is a heading, else None."""
    stripped = line.rstrip()
    match = H2_PATTERN.match(stripped) or BOLD_LINE_PATTERN.match(stripped)
    if match is None:
        return None
    title = clean_title(match.group(1))
    return title or None


def section_icon(title: str) -> str:
    lowered = title.lower()
    for key, icon in SECTION_ICONS:
        if key in lowered:
            return icon
    return DEFAULT_ICON


def canonical_for(title: str) -> Optional[CanonicalSection]:
    """The canonical section a title folds into, or None if unrecognized."""
    lowered = title.lower()
    for canonical, needles in MERGE_RULES:
        if any(needle in lowered for needle in needles):
            return canonical
    return None


def parse_sections(text: str) -> List[AnalysisSection]:
    """
    Split analysis text into titled sections.

    Returns:
        Sections in document order; sections with a blank body are omitted.
    """
    sections: List[AnalysisSection] = []
    title: Optional[str] = None
    body: List[str] = []

    def flush() -> None:
        if title is not None:
            content = "\n".join(body).strip()
            if content:
                sections.append(AnalysisSection(title=title, content=content))

    for line in (text or "").splitlines():
        heading = match_heading(line)
        if heading is not None:
            flush()
            title, body = heading, []
        elif title is not None:
            body.append(line)
        elif line.strip():
            title, body = CanonicalSection.OVERVIEW.value, [line]

    flush()
    return sections


def consolidate_sections(sections: List[AnalysisSection]) -> List[AnalysisSection]:
    """
    Merge sections into the canonical taxonomy.

    Canonical sections come first in CanonicalSection order, followed by
    unrecognized sections in first-seen order. Blank sections are dropped.
    """
    exact: Dict[CanonicalSection, List[str]] = {canonical: [] for canonical in CanonicalSection}
    aliases: Dict[CanonicalSection, List[str]] = {canonical: [] for canonical in CanonicalSection}
    unmatched: List[AnalysisSection] = []

    for section in sections:
        content = section.content.strip()
        if not content:
            continue
        canonical = canonical_for(section.title)
        if canonical is None:
            unmatched.append(AnalysisSection(title=section.title, content=content))
        elif section.title.strip().lower() == canonical.value.lower():
            exact[canonical].append(content)
        else:
            aliases[canonical].append(f"### {section.title}\n\n{content}")

    merged: List[AnalysisSection] = []
    for canonical in CanonicalSection:
        bodies = exact[canonical] + aliases[canonical]
        if bodies:
            merged.append(AnalysisSection(title=canonical.value, content="\n\n".join(bodies)))

    return merged + unmatched


def consolidate_analysis(text: str) -> List[AnalysisSection]:
    """Parse then consolidate raw analysis text."""
    return consolidate_sections(parse_sections(text))
