"""
Audit Registry

Maps every AuditType to its definition: display name, the CRM record kinds
it needs, and its calculator/formatter pair. Dispatch goes through
AUDIT_REGISTRY only; adding an AuditType member without registering it fails
at import time.

Usage:
    definition = get_audit_definition(AuditType.CONTACT_QUALITY)
    metrics = definition.calculate(inputs, now, thresholds)
    groups = definition.format(metrics)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from hubauditor.core.config import Settings
from hubauditor.models.enums import AuditType, RecordKind
from hubauditor.models.schemas import CrmRecord, MetricGroup, MetricsResult
from hubauditor.services.company_enrichment import (
    calculate_company_enrichment,
    format_company_enrichment,
)
from hubauditor.services.contact_quality import (
    STALE_CONTACT_DAYS,
    calculate_contact_quality,
    format_contact_quality,
)
from hubauditor.services.lead_scoring import (
    ENGAGEMENT_WINDOW_DAYS,
    calculate_lead_scoring,
    format_lead_scoring,
)
from hubauditor.services.pipeline_health import (
    STUCK_DEAL_DAYS,
    calculate_pipeline_health,
    format_pipeline_health,
)
from hubauditor.services.sync_integrity import (
    calculate_sync_integrity,
    format_sync_integrity,
)


# =============================================================================
# Registry Types
# =============================================================================

@dataclass(frozen=True)
class AuditThresholds:
    """Day thresholds used by the time-based calculators."""
    stale_contact_days: int = STALE_CONTACT_DAYS
    stuck_deal_days: int = STUCK_DEAL_DAYS
    engagement_window_days: int = ENGAGEMENT_WINDOW_DAYS

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuditThresholds":
        return cls(
            stale_contact_days=settings.stale_contact_days,
            stuck_deal_days=settings.stuck_deal_days,
            engagement_window_days=settings.engagement_window_days,
        )


@dataclass
class AuditInputs:
    """Records fetched for one audit run. Kinds an audit does not need stay empty."""
    contacts: List[CrmRecord] = field(default_factory=list)
    deals: List[CrmRecord] = field(default_factory=list)
    companies: List[CrmRecord] = field(default_factory=list)
    integration_data: Optional[Mapping[str, Any]] = None


Calculator = Callable[[AuditInputs, datetime, AuditThresholds], MetricsResult]
Formatter = Callable[[Any], List[MetricGroup]]


@dataclass(frozen=True)
class AuditDefinition:
    audit_type: AuditType
    display_name: str
    description: str
    record_kinds: FrozenSet[RecordKind]
    calculate: Calculator
    format: Formatter


# =============================================================================
# Registry
# =============================================================================

AUDIT_REGISTRY: Dict[AuditType, AuditDefinition] = {
    AuditType.CONTACT_QUALITY: AuditDefinition(
        audit_type=AuditType.CONTACT_QUALITY,
        display_name="Contact Data Quality",
        description="Duplicates, missing fields, bounces, ownership and stale contacts.",
        record_kinds=frozenset({RecordKind.CONTACT}),
        calculate=lambda inputs, now, limits: calculate_contact_quality(
            inputs.contacts, now=now, stale_days=limits.stale_contact_days,
        ),
        format=format_contact_quality,
    ),
    AuditType.PIPELINE_HEALTH: AuditDefinition(
        audit_type=AuditType.PIPELINE_HEALTH,
        display_name="Deal Pipeline Health",
        description="Stage distribution, deal age, stuck deals and forecast gaps.",
        record_kinds=frozenset({RecordKind.DEAL}),
        calculate=lambda inputs, now, limits: calculate_pipeline_health(
            inputs.deals, now=now, stuck_days=limits.stuck_deal_days,
        ),
        format=format_pipeline_health,
    ),
    AuditType.COMPANY_ENRICHMENT: AuditDefinition(
        audit_type=AuditType.COMPANY_ENRICHMENT,
        display_name="Company Enrichment",
        description="Firmographic completeness and contact coverage of companies.",
        record_kinds=frozenset({RecordKind.COMPANY, RecordKind.CONTACT}),
        calculate=lambda inputs, now, limits: calculate_company_enrichment(
            inputs.companies, contacts=inputs.contacts,
        ),
        format=format_company_enrichment,
    ),
    AuditType.LEAD_SCORING: AuditDefinition(
        audit_type=AuditType.LEAD_SCORING,
        display_name="Lead Scoring & Segmentation",
        description="Lead score buckets, lifecycle stages, conversion time and engagement.",
        record_kinds=frozenset({RecordKind.CONTACT}),
        calculate=lambda inputs, now, limits: calculate_lead_scoring(
            inputs.contacts, now=now, engagement_days=limits.engagement_window_days,
        ),
        format=format_lead_scoring,
    ),
    AuditType.SYNC_INTEGRITY: AuditDefinition(
        audit_type=AuditType.SYNC_INTEGRITY,
        display_name="Sync Integrity",
        description="Integration sync health (limited without integration API access).",
        record_kinds=frozenset(),
        calculate=lambda inputs, now, limits: calculate_sync_integrity(inputs.integration_data),
        format=format_sync_integrity,
    ),
}


def _check_registry_is_exhaustive() -> None:
    missing = [audit_type.value for audit_type in AuditType if audit_type not in AUDIT_REGISTRY]
    if missing:
        raise RuntimeError(f"Audit types without a registry entry: {', '.join(missing)}")


_check_registry_is_exhaustive()


def get_audit_definition(audit_type: AuditType) -> AuditDefinition:
    """
    Look up the definition for an audit type.

    Raises:
        ValueError: If audit_type is not a valid AuditType value.
    """
    return AUDIT_REGISTRY[AuditType(audit_type)]


def display_name(audit_type: AuditType) -> str:
    return get_audit_definition(audit_type).display_name
