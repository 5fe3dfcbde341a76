"""
HubAuditor Services Module

Business logic for the audit pipeline and the account features around it.
Calculators, formatters, the consolidator and the renderer are pure
functions; clients and repositories receive their connections explicitly.

Services:
- contact_quality, pipeline_health, company_enrichment, lead_scoring,
  sync_integrity: one calculator/formatter pair per audit type
- audit_registry: AuditType -> calculator/formatter dispatch (exhaustive)
- prompt_builder: metrics -> generation prompt
- generation_client: Anthropic Messages API wrapper with typed failures
- section_consolidator: raw analysis -> canonical sections
- markdown_renderer: section body -> sanitized HTML
- hubspot_client: rate-limited, paginated HubSpot CRM reads
- audit_pipeline: end-to-end run_audit
- users, tokens, audit_history: asyncpg repositories
"""

# =============================================================================
# Calculators and Formatters
# =============================================================================

from hubauditor.services.contact_quality import (
    calculate_contact_quality,
    format_contact_quality,
)
from hubauditor.services.pipeline_health import (
    calculate_pipeline_health,
    format_pipeline_health,
)
from hubauditor.services.company_enrichment import (
    calculate_company_enrichment,
    format_company_enrichment,
)
from hubauditor.services.lead_scoring import (
    calculate_lead_scoring,
    format_lead_scoring,
)
from hubauditor.services.sync_integrity import (
    calculate_sync_integrity,
    format_sync_integrity,
)

# =============================================================================
# Audit Pipeline
# =============================================================================

from hubauditor.services.audit_registry import (
    AUDIT_REGISTRY,
    AuditDefinition,
    AuditInputs,
    AuditThresholds,
    get_audit_definition,
)
from hubauditor.services.prompt_builder import build_prompt, format_label
from hubauditor.services.generation_client import GenerationClient, GenerationError
from hubauditor.services.section_consolidator import (
    parse_sections,
    consolidate_sections,
    consolidate_analysis,
)
from hubauditor.services.markdown_renderer import render_markdown
from hubauditor.services.hubspot_client import HubSpotClient, HubSpotError
from hubauditor.services.audit_pipeline import run_audit

__all__ = [
    'calculate_contact_quality',
    'format_contact_quality',
    'calculate_pipeline_health',
    'format_pipeline_health',
    'calculate_company_enrichment',
    'format_company_enrichment',
    'calculate_lead_scoring',
    'format_lead_scoring',
    'calculate_sync_integrity',
    'format_sync_integrity',
    'AUDIT_REGISTRY',
    'AuditDefinition',
    'AuditInputs',
    'AuditThresholds',
    'get_audit_definition',
    'build_prompt',
    'format_label',
    'GenerationClient',
    'GenerationError',
    'parse_sections',
    'consolidate_sections',
    'consolidate_analysis',
    'render_markdown',
    'HubSpotClient',
    'HubSpotError',
    'run_audit',
]
