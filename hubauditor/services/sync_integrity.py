"""
Sync Integrity audit.

HubSpot does not expose integration sync status to private-app tokens, so
this audit reports a placeholder: every counter is zeroed and
``dataAvailable`` is False unless the caller supplies integration data of
the form ``{"integrations": [...], "lastSync": "..."}``.
"""

from typing import Any, List, Mapping, Optional

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import MetricCard, MetricGroup, SyncIntegrityMetrics
from hubauditor.services.metric_utils import severity_above


def calculate_sync_integrity(
    integration_data: Optional[Mapping[str, Any]] = None,
) -> SyncIntegrityMetrics:
    """Return sync metrics, or the zeroed placeholder when no data is available."""
    if not integration_data:
        return SyncIntegrityMetrics()

    integrations = integration_data.get("integrations") or []
    last_sync = integration_data.get("lastSync") or "Unknown"
    return SyncIntegrityMetrics(
        activeIntegrations=len(integrations),
        lastSuccessfulSync=str(last_sync),
        dataAvailable=bool(integrations),
    )


def format_sync_integrity(metrics: SyncIntegrityMetrics) -> List[MetricGroup]:
    has_integrations = metrics.activeIntegrations > 0

    return [
        MetricGroup(
            title="Integration Overview",
            metrics=[
                MetricCard(
                    label="Active Integrations",
                    value=metrics.activeIntegrations if has_integrations else "Data Not Available",
                    severity=Severity.GOOD if has_integrations else Severity.WARNING,
                    description="Number of active integrations syncing with HubSpot. "
                                "Requires additional API permissions to read.",
                ),
            ],
        ),
        MetricGroup(
            title="Sync Health",
            metrics=[
                MetricCard(
                    label="Recent Sync Errors",
                    value=metrics.recentSyncErrors if has_integrations else "N/A",
                    severity=severity_above(metrics.recentSyncErrors, 10, 5),
                    description="Sync errors in the past 7 days.",
                ),
                MetricCard(
                    label="Property Mapping Coverage",
                    value=f"{metrics.propertyMappingCoverage:g}%" if has_integrations else "N/A",
                    severity=Severity.WARNING if metrics.propertyMappingCoverage < 70 else Severity.GOOD,
                    description="Share of fields mapped between integrated systems.",
                ),
            ],
        ),
        MetricGroup(
            title="Sync Status",
            metrics=[
                MetricCard(
                    label="Last Successful Sync",
                    value=metrics.lastSuccessfulSync,
                    description="Most recent successful sync across all integrations.",
                ),
            ],
        ),
        MetricGroup(
            title="Important Note",
            metrics=[
                MetricCard(
                    label="API Access Required",
                    value="Limited Data",
                    severity=Severity.WARNING,
                    description="Full sync integrity analysis requires additional HubSpot API "
                                "permissions or HubSpot's native integration monitoring tools.",
                ),
            ],
        ),
    ]
