"""
Audit Pipeline Service

Runs one audit end to end:

    fetch records -> calculate metrics -> format metric groups
                  -> build prompt -> generate analysis
                  -> consolidate sections -> render HTML

All steps run sequentially for a single request. The HubSpot and generation
clients are passed in; this module owns no connections.

Failure semantics:
- HubSpotError and GenerationError propagate unchanged for the router to
  translate. They are recoverable by re-running the audit.
- Calculators, formatters, consolidator and renderer do not raise for
  well-formed records; an exception from them is a bug.
"""

import logging
from datetime import datetime
from typing import List, Optional

from hubauditor.models.enums import AuditType, RecordKind
from hubauditor.models.schemas import AccountContext, AuditReport, RenderedSection
from hubauditor.services.audit_registry import (
    AuditInputs,
    AuditThresholds,
    get_audit_definition,
)
from hubauditor.services.generation_client import GenerationClient
from hubauditor.services.hubspot_client import HubSpotClient
from hubauditor.services.markdown_renderer import render_markdown
from hubauditor.services.metric_utils import resolve_now
from hubauditor.services.prompt_builder import build_prompt
from hubauditor.services.section_consolidator import consolidate_analysis, section_icon


logger = logging.getLogger(__name__)

# Fetch order when an audit needs more than one record kind
FETCH_ORDER: List[RecordKind] = [RecordKind.CONTACT, RecordKind.DEAL, RecordKind.COMPANY]


async def fetch_inputs(audit_type: AuditType, hubspot_client: HubSpotClient) -> AuditInputs:
    """Fetch the record kinds the audit's registry entry declares."""
    definition = get_audit_definition(audit_type)
    inputs = AuditInputs()
    for kind in FETCH_ORDER:
        if kind not in definition.record_kinds:
            continue
        records = await hubspot_client.fetch_records(kind)
        if kind == RecordKind.CONTACT:
            inputs.contacts = records
        elif kind == RecordKind.DEAL:
            inputs.deals = records
        else:
            inputs.companies = records
    return inputs


def render_sections(analysis: str) -> List[RenderedSection]:
    """Consolidate raw analysis text and render each section to HTML."""
    return [
        RenderedSection(
            title=section.title,
            icon=section_icon(section.title),
            content=section.content,
            html=render_markdown(section.content),
        )
        for section in consolidate_analysis(analysis)
    ]


async def run_audit(
    audit_type: AuditType,
    hubspot_client: HubSpotClient,
    generation_client: GenerationClient,
    account_context: Optional[AccountContext] = None,
    now: Optional[datetime] = None,
    thresholds: Optional[AuditThresholds] = None,
) -> AuditReport:
    """
    Run a complete audit.

    Args:
        audit_type: Which audit to run.
        hubspot_client: Record source for the audited account.
        generation_client: Text-generation service client.
        account_context: Optional business context included in the prompt.
        now: Evaluation time; defaults to the current UTC time.
        thresholds: Day thresholds; defaults to the built-in policy.

    Returns:
        AuditReport with metrics, metric groups, raw analysis and rendered sections.

    Raises:
        HubSpotError: If fetching records fails.
        GenerationError: If the generation service fails.
    """
    audit_type = AuditType(audit_type)
    now = resolve_now(now)
    thresholds = thresholds or AuditThresholds()
    definition = get_audit_definition(audit_type)

    inputs = await fetch_inputs(audit_type, hubspot_client)
    logger.info(
        f"Running {audit_type.value} audit over {len(inputs.contacts)} contacts, "
        f"{len(inputs.deals)} deals, {len(inputs.companies)} companies"
    )

    metrics = definition.calculate(inputs, now, thresholds)
    metric_groups = definition.format(metrics)

    prompt = build_prompt(audit_type, metrics, account_context)
    analysis = await generation_client.generate_analysis(prompt)
    sections = render_sections(analysis)

    logger.info(f"Completed {audit_type.value} audit with {len(sections)} report sections")

    return AuditReport(
        auditType=audit_type,
        timestamp=now.isoformat(),
        metrics=metrics,
        metricGroups=metric_groups,
        analysis=analysis,
        sections=sections,
        accountContext=account_context,
    )
