"""
Contact Data Quality audit.

Calculates duplicate, completeness, deliverability, ownership and staleness
metrics over a list of HubSpot contacts, and formats them into sidebar
metric groups.

Severity thresholds (percent of total contacts):
- Duplicate contacts: > 5 critical, > 2 warning
- Missing email: > 20 critical, > 10 warning
- Missing phone: > 30 warning
- Hard bounce rate: > 5 critical, > 2 warning
- Unassigned contacts: > 15 warning
- Stale contacts: > 30 warning
"""

from collections import Counter
from datetime import datetime
from typing import List, Optional, Sequence

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import (
    ContactQualityMetrics,
    CrmRecord,
    MetricCard,
    MetricGroup,
)
from hubauditor.services.metric_utils import (
    count_missing,
    distribution,
    distribution_cards,
    format_pct,
    is_older_than,
    percentage,
    resolve_now,
    severity_above,
    warning_above,
)


STALE_CONTACT_DAYS: int = 90
LIFECYCLE_TOP_N: int = 5

# HubSpot sends the flag as the literal string "true"; other spellings do not count
BOUNCED: str = "true"


def count_duplicate_emails(contacts: Sequence[CrmRecord]) -> int:
    """
    Count duplicate contacts by email, ignoring case and surrounding space.

    An address seen n times contributes n - 1. Contacts with no email are
    not duplicates of each other.
    """
    emails = Counter(
        email.lower()
        for email in (contact.prop("email") for contact in contacts)
        if email
    )
    return sum(count - 1 for count in emails.values() if count > 1)


def calculate_contact_quality(
    contacts: Sequence[CrmRecord],
    now: Optional[datetime] = None,
    stale_days: int = STALE_CONTACT_DAYS,
) -> ContactQualityMetrics:
    """
    Calculate contact data quality metrics.

    Args:
        contacts: Contact records.
        now: Evaluation time for staleness; defaults to the current UTC time.
        stale_days: A contact whose lastmodifieddate is missing or older than
            this many days is stale.

    Returns:
        ContactQualityMetrics with all percentages in [0, 100].
    """
    now = resolve_now(now)
    total = len(contacts)

    duplicates = count_duplicate_emails(contacts)
    missing_email = count_missing(contacts, "email")
    missing_phone = count_missing(contacts, "phone")
    hard_bounces = sum(
        1 for contact in contacts
        if contact.prop("hs_email_bounce") == BOUNCED
    )
    unassigned = count_missing(contacts, "hubspot_owner_id")
    stale = sum(
        1 for contact in contacts
        if is_older_than(contact, "lastmodifieddate", stale_days, now)
    )

    return ContactQualityMetrics(
        totalContacts=total,
        duplicates=duplicates,
        duplicateRate=percentage(duplicates, total),
        missingEmail=missing_email,
        missingEmailPct=percentage(missing_email, total),
        missingPhone=missing_phone,
        missingPhonePct=percentage(missing_phone, total),
        hardBounceRate=percentage(hard_bounces, total),
        unassignedContacts=unassigned,
        unassignedPct=percentage(unassigned, total),
        staleContacts=stale,
        staleContactsPct=percentage(stale, total),
        lifecycleDistribution=distribution(contacts, "lifecyclestage"),
    )


def format_contact_quality(metrics: ContactQualityMetrics) -> List[MetricGroup]:
    """Convert contact quality metrics into sidebar groups, Overview first."""
    return [
        MetricGroup(
            title="Overview",
            metrics=[
                MetricCard(
                    label="Total Contacts",
                    value=metrics.totalContacts,
                    severity=Severity.GOOD,
                    description="The total number of contacts in your HubSpot database.",
                ),
            ],
        ),
        MetricGroup(
            title="Data Quality Issues",
            metrics=[
                MetricCard(
                    label="Duplicate Contacts",
                    value=metrics.duplicates,
                    percentage=metrics.duplicateRate,
                    severity=severity_above(metrics.duplicateRate, 5, 2),
                    description="Contacts sharing an email address with another contact. "
                                "Duplicates split activity history and inflate your contact count.",
                ),
                MetricCard(
                    label="Missing Email",
                    value=metrics.missingEmail,
                    percentage=metrics.missingEmailPct,
                    severity=severity_above(metrics.missingEmailPct, 20, 10),
                    description="Contacts without an email address cannot receive marketing emails.",
                ),
                MetricCard(
                    label="Missing Phone",
                    value=metrics.missingPhone,
                    percentage=metrics.missingPhonePct,
                    severity=warning_above(metrics.missingPhonePct, 30),
                    description="Contacts without a phone number limit outreach for sales calls.",
                ),
                MetricCard(
                    label="Hard Bounce Rate",
                    value=format_pct(metrics.hardBounceRate),
                    severity=severity_above(metrics.hardBounceRate, 5, 2),
                    description="Share of contacts whose email hard-bounced. "
                                "High bounce rates hurt sender reputation.",
                ),
            ],
        ),
        MetricGroup(
            title="Contact Management",
            metrics=[
                MetricCard(
                    label="Unassigned Contacts",
                    value=metrics.unassignedContacts,
                    percentage=metrics.unassignedPct,
                    severity=warning_above(metrics.unassignedPct, 15),
                    description="Contacts without an owner. Nobody is responsible for following up.",
                ),
                MetricCard(
                    label="Stale Contacts (90+ days)",
                    value=metrics.staleContacts,
                    percentage=metrics.staleContactsPct,
                    severity=warning_above(metrics.staleContactsPct, 30),
                    description="Contacts not updated in over 90 days, or never updated at all.",
                ),
            ],
        ),
        MetricGroup(
            title="Lifecycle Distribution",
            metrics=distribution_cards(
                metrics.lifecycleDistribution,
                metrics.totalContacts,
                limit=LIFECYCLE_TOP_N,
            ),
        ),
    ]
