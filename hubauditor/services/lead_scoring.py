"""
Lead Scoring & Segmentation audit.

Buckets contacts by lead score, counts lifecycle stages, measures the
average lead-to-customer time and the 30-day engagement rate.

Score buckets (first present of hs_lead_score, hubspotscore):
- No Score: neither field present, or not a number
- Low (1-30): score <= 30
- Medium (31-70): 30 < score <= 70
- High (71-100): score > 70
"""

import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import (
    CrmRecord,
    LeadScoringMetrics,
    MetricCard,
    MetricGroup,
)
from hubauditor.services.metric_utils import (
    days_between,
    distribution,
    format_pct,
    percentage,
    resolve_now,
    round_half_up,
    severity_below,
    sorted_counts,
)


ENGAGEMENT_WINDOW_DAYS: int = 30
SCORE_FIELDS: tuple = ("hs_lead_score", "hubspotscore")
CUSTOMER_STAGE: str = "customer"
AVERAGE_DAYS_KEY: str = "Average Days"

NO_SCORE: str = "No Score"
LOW_SCORE: str = "Low (1-30)"
MEDIUM_SCORE: str = "Medium (31-70)"
HIGH_SCORE: str = "High (71-100)"

NO_SCORE_DESCRIPTION: str = (
    "Contacts without a lead score. Consider implementing lead scoring "
    "to prioritize your best leads."
)


def score_bucket(contact: CrmRecord) -> str:
    raw = next((contact.prop(field) for field in SCORE_FIELDS if contact.has(field)), None)
    if raw is None:
        return NO_SCORE
    try:
        score = float(raw)
    except ValueError:
        return NO_SCORE
    if math.isnan(score):
        return NO_SCORE
    if score <= 30:
        return LOW_SCORE
    if score <= 70:
        return MEDIUM_SCORE
    return HIGH_SCORE


def average_days_to_conversion(contacts: Sequence[CrmRecord]) -> int:
    """
    Mean whole days from createdate to the record's last update, over
    contacts whose lifecyclestage is exactly "customer". 0 when none qualify.
    """
    durations: List[int] = []
    for contact in contacts:
        if contact.prop("lifecyclestage") != CUSTOMER_STAGE:
            continue
        created = contact.timestamp("createdate")
        if created is None or contact.updatedAt is None:
            continue
        updated = contact.updatedAt
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=created.tzinfo)
        durations.append(math.floor(days_between(created, updated)))

    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def calculate_lead_scoring(
    contacts: Sequence[CrmRecord],
    now: Optional[datetime] = None,
    engagement_days: int = ENGAGEMENT_WINDOW_DAYS,
) -> LeadScoringMetrics:
    """
    Calculate lead scoring and segmentation metrics.

    Args:
        contacts: Contact records.
        now: Evaluation time for the engagement window.
        engagement_days: A contact modified strictly within this many days
            counts as engaged. A missing lastmodifieddate is not engaged.
    """
    now = resolve_now(now)
    total = len(contacts)

    buckets: Dict[str, int] = {NO_SCORE: 0, LOW_SCORE: 0, MEDIUM_SCORE: 0, HIGH_SCORE: 0}
    for contact in contacts:
        buckets[score_bucket(contact)] += 1

    engaged = 0
    for contact in contacts:
        modified = contact.timestamp("lastmodifieddate")
        if modified is not None and days_between(modified, now) < engagement_days:
            engaged += 1

    return LeadScoringMetrics(
        contactsByLifecycle=distribution(contacts, "lifecyclestage"),
        leadScoreDistribution=buckets,
        avgTimeToConversion={AVERAGE_DAYS_KEY: average_days_to_conversion(contacts)},
        segmentOverlap=0,
        engagementRate=percentage(engaged, total),
    )


def format_lead_scoring(metrics: LeadScoringMetrics) -> List[MetricGroup]:
    total = sum(metrics.contactsByLifecycle.values())
    no_score_pct = percentage(metrics.leadScoreDistribution.get(NO_SCORE, 0), total)
    avg_days = metrics.avgTimeToConversion.get(AVERAGE_DAYS_KEY, 0)

    score_cards = [
        MetricCard(
            label=bucket,
            value=count,
            percentage=percentage(count, total),
            severity=Severity.WARNING if bucket == NO_SCORE and no_score_pct > 30 else None,
            description=NO_SCORE_DESCRIPTION if bucket == NO_SCORE else None,
        )
        for bucket, count in metrics.leadScoreDistribution.items()
    ]

    return [
        MetricGroup(title="Lead Score Distribution", metrics=score_cards),
        MetricGroup(
            title="Lifecycle Stage Distribution",
            metrics=[
                MetricCard(
                    label=stage,
                    value=count,
                    percentage=percentage(count, total),
                    description=f"Number of contacts in the {stage} lifecycle stage.",
                )
                for stage, count in sorted_counts(metrics.contactsByLifecycle)
            ],
        ),
        MetricGroup(
            title="Engagement & Conversion",
            metrics=[
                MetricCard(
                    label="Engagement Rate (30 days)",
                    value=format_pct(metrics.engagementRate),
                    severity=severity_below(metrics.engagementRate, 20, 40),
                    description="Contacts updated or engaged with in the last 30 days.",
                ),
                MetricCard(
                    label="Avg. Days to Convert",
                    value=avg_days if avg_days > 0 else "N/A",
                    description="Average days from contact creation to becoming a customer.",
                ),
            ],
        ),
    ]
