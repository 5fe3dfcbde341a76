"""
Shared helpers for the audit calculators and formatters.

Every percentage in an audit goes through :func:`percentage`, so the
"0 when the total is 0" rule lives in one place. The severity helpers encode
the two threshold shapes the formatters use: higher-is-worse
(``value > critical`` is critical) and lower-is-worse (``value < critical``
is critical).
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import CrmRecord, MetricCard


SECONDS_PER_DAY: int = 24 * 60 * 60
UNKNOWN_BUCKET: str = "Unknown"


# =============================================================================
# Calculation Helpers
# =============================================================================

def percentage(part: float, total: float) -> float:
    """Return part/total*100, or 0.0 when total is 0. Clamped to [0, 100]."""
    if total <= 0:
        return 0.0
    return max(0.0, min(100.0, (part / total) * 100))


def resolve_now(now: Optional[datetime]) -> datetime:
    """Return an aware evaluation time, defaulting to the current UTC time."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def count_missing(records: Iterable[CrmRecord], prop: str) -> int:
    return sum(1 for record in records if not record.has(prop))


def distribution(records: Iterable[CrmRecord], prop: str) -> Dict[str, int]:
    """
    Count records by the value of a property.

    Records with the property missing land in the "Unknown" bucket, so the
    bucket counts always sum to the number of records.
    """
    counts: Counter = Counter(record.prop(prop) or UNKNOWN_BUCKET for record in records)
    return dict(counts)


def is_older_than(
    record: CrmRecord,
    prop: str,
    days: int,
    now: datetime,
) -> bool:
    """
    True when the date property is missing or older than ``days`` before now.

    A missing or unparseable timestamp counts as old.
    """
    stamp = record.timestamp(prop)
    if stamp is None:
        return True
    return days_between(stamp, now) > days


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# =============================================================================
# Formatting Helpers
# =============================================================================

def severity_above(value: float, critical: float, warning: Optional[float] = None) -> Severity:
    """Higher is worse: > critical is critical, > warning is warning."""
    if value > critical:
        return Severity.CRITICAL
    if warning is not None and value > warning:
        return Severity.WARNING
    return Severity.GOOD


def warning_above(value: float, warning: float) -> Severity:
    return Severity.WARNING if value > warning else Severity.GOOD


def severity_below(value: float, critical: float, warning: float) -> Severity:
    """Lower is worse: < critical is critical, < warning is warning."""
    if value < critical:
        return Severity.CRITICAL
    if value < warning:
        return Severity.WARNING
    return Severity.GOOD


def sorted_counts(counts: Dict[str, int], limit: Optional[int] = None) -> List[Tuple[str, int]]:
    """Distribution entries sorted by count, descending; ties keep insertion order."""
    entries = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return entries[:limit] if limit is not None else entries


def distribution_cards(
    counts: Dict[str, int],
    total: int,
    limit: Optional[int] = None,
) -> List[MetricCard]:
    """Cards for a distribution group, largest bucket first."""
    return [
        MetricCard(label=label, value=count, percentage=percentage(count, total))
        for label, count in sorted_counts(counts, limit)
    ]


def format_pct(value: float) -> str:
    return f"{value:.1f}%"
