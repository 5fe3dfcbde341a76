"""
Deal Pipeline Health audit.

Calculates stage distribution, per-stage deal age, stuck deals, forecast
gaps (missing close date / amount) and total pipeline value, and formats
them into sidebar metric groups.
"""

import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import (
    CrmRecord,
    MetricCard,
    MetricGroup,
    PipelineHealthMetrics,
)
from hubauditor.services.metric_utils import (
    UNKNOWN_BUCKET,
    count_missing,
    days_between,
    distribution,
    distribution_cards,
    is_older_than,
    percentage,
    resolve_now,
    round_half_up,
    severity_above,
    sorted_counts,
    warning_above,
)


STUCK_DEAL_DAYS: int = 30
OLD_STAGE_DAYS: int = 90
DEAL_AGE_TOP_N: int = 5


def parse_amount(value: Optional[str]) -> Optional[float]:
    """Parse a deal amount; None when absent, blank or not a finite number."""
    if value is None:
        return None
    try:
        amount = float(value.replace(",", ""))
    except ValueError:
        return None
    if math.isnan(amount) or math.isinf(amount):
        return None
    return amount


def average_age_by_stage(deals: Sequence[CrmRecord], now: datetime) -> Dict[str, int]:
    """
    Mean age in whole days per deal stage.

    Each deal's age is floored to whole days; the per-stage mean is rounded
    to the nearest day. Deals without a createdate are skipped, and a stage
    with no dated deals is left out of the result.
    """
    ages: Dict[str, List[int]] = defaultdict(list)
    for deal in deals:
        created = deal.timestamp("createdate")
        if created is None:
            continue
        stage = deal.prop("dealstage") or UNKNOWN_BUCKET
        ages[stage].append(math.floor(days_between(created, now)))

    return {
        stage: round_half_up(sum(stage_ages) / len(stage_ages))
        for stage, stage_ages in ages.items()
    }


def calculate_pipeline_health(
    deals: Sequence[CrmRecord],
    now: Optional[datetime] = None,
    stuck_days: int = STUCK_DEAL_DAYS,
) -> PipelineHealthMetrics:
    """
    Calculate deal pipeline health metrics.

    Args:
        deals: Deal records.
        now: Evaluation time; defaults to the current UTC time.
        stuck_days: A deal whose hs_lastmodifieddate is missing or older than
            this many days is stuck.

    Returns:
        PipelineHealthMetrics. An amount that is absent, blank or not numeric
        counts as missing and contributes nothing to totalPipelineValue.
    """
    now = resolve_now(now)
    total = len(deals)

    stuck = sum(
        1 for deal in deals
        if is_older_than(deal, "hs_lastmodifieddate", stuck_days, now)
    )
    missing_close_date = count_missing(deals, "closedate")

    amounts = [parse_amount(deal.prop("amount")) for deal in deals]
    missing_amount = sum(1 for amount in amounts if amount is None)
    total_value = sum(amount for amount in amounts if amount is not None)

    return PipelineHealthMetrics(
        totalDeals=total,
        dealsByStage=distribution(deals, "dealstage"),
        avgDealAgeByStage=average_age_by_stage(deals, now),
        stuckDeals=stuck,
        stuckDealsPct=percentage(stuck, total),
        missingCloseDate=missing_close_date,
        missingCloseDatePct=percentage(missing_close_date, total),
        missingAmount=missing_amount,
        missingAmountPct=percentage(missing_amount, total),
        totalPipelineValue=total_value,
    )


def format_currency_thousands(value: float) -> str:
    return f"${value / 1000:.1f}K"


def format_pipeline_health(metrics: PipelineHealthMetrics) -> List[MetricGroup]:
    """Convert pipeline metrics into sidebar groups, Overview first."""
    return [
        MetricGroup(
            title="Overview",
            metrics=[
                MetricCard(
                    label="Total Deals",
                    value=metrics.totalDeals,
                    severity=Severity.GOOD,
                    description="The total number of deals currently in your sales pipeline.",
                ),
                MetricCard(
                    label="Total Pipeline Value",
                    value=format_currency_thousands(metrics.totalPipelineValue),
                    severity=Severity.GOOD,
                    description="The combined value of all deals with a numeric amount.",
                ),
            ],
        ),
        MetricGroup(
            title="Pipeline Issues",
            metrics=[
                MetricCard(
                    label="Stuck Deals (30+ days)",
                    value=metrics.stuckDeals,
                    percentage=metrics.stuckDealsPct,
                    severity=severity_above(metrics.stuckDealsPct, 30, 15),
                    description="Deals that haven't been updated in over a month.",
                ),
                MetricCard(
                    label="Missing Close Date",
                    value=metrics.missingCloseDate,
                    percentage=metrics.missingCloseDatePct,
                    severity=severity_above(metrics.missingCloseDatePct, 20, 10),
                    description="Deals without an expected close date cannot be forecast.",
                ),
                MetricCard(
                    label="Missing Amount",
                    value=metrics.missingAmount,
                    percentage=metrics.missingAmountPct,
                    severity=severity_above(metrics.missingAmountPct, 25, 10),
                    description="Deals without a usable dollar value.",
                ),
            ],
        ),
        MetricGroup(
            title="Deals by Stage",
            metrics=distribution_cards(metrics.dealsByStage, metrics.totalDeals),
        ),
        MetricGroup(
            title="Average Deal Age by Stage",
            metrics=[
                MetricCard(
                    label=stage,
                    value=f"{avg_age} days",
                    severity=warning_above(avg_age, OLD_STAGE_DAYS),
                )
                for stage, avg_age in sorted_counts(metrics.avgDealAgeByStage, DEAL_AGE_TOP_N)
            ],
        ),
    ]
