"""
Enumeration definitions for the HubAuditor backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings in Pydantic models and JSON responses, and compare equal to the raw
tag values the frontend sends (e.g. ``AuditType("contact-quality")``).
"""

from enum import Enum


class AuditType(str, Enum):
    """
    The five fixed audit categories a user can run against a CRM account.

    Values are the kebab-case tags used on the wire. Every member must have
    an entry in hubauditor.services.audit_registry.AUDIT_REGISTRY; the
    registry checks this at import time.
    """
    CONTACT_QUALITY = "contact-quality"
    PIPELINE_HEALTH = "pipeline-health"
    COMPANY_ENRICHMENT = "company-enrichment"
    LEAD_SCORING = "lead-scoring"
    SYNC_INTEGRITY = "sync-integrity"


class Severity(str, Enum):
    """
    Qualitative display tag attached to a metric card.

    - good: Within healthy bounds
    - warning: Needs attention
    - critical: Needs immediate action
    """
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class RecordKind(str, Enum):
    """CRM object kinds fetched from HubSpot."""
    CONTACT = "contact"
    DEAL = "deal"
    COMPANY = "company"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TokenType(str, Enum):
    """Kind of third-party credential stored in user_tokens."""
    HUBSPOT = "hubspot"
    CLAUDE = "claude"


class GenerationErrorKind(str, Enum):
    """
    Failure causes surfaced by the generation client.

    - invalid_credentials: API key rejected (upstream 401)
    - rate_limited: Upstream rate limit hit (upstream 429)
    - upstream_error: Upstream 5xx or connection failure
    - unknown: Anything else
    """
    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    UNKNOWN = "unknown"


class HubSpotErrorKind(str, Enum):
    """
    Failure causes surfaced by the HubSpot client.

    - invalid_token: 401 from HubSpot
    - forbidden: 403, token lacks the required scopes
    - rate_limited: 429 from HubSpot
    - no_response: Transport failure, no HTTP response received
    - api_error: Any other non-success status
    """
    INVALID_TOKEN = "invalid_token"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    NO_RESPONSE = "no_response"
    API_ERROR = "api_error"


class CanonicalSection(str, Enum):
    """
    Normalized report section titles, in display order.

    Member order is significant: the section consolidator emits canonical
    sections in exactly this order.
    """
    OVERVIEW = "Overview"
    BUSINESS_IMPACT = "Business Impact"
    RECOMMENDATIONS = "Recommendations"
    BENCHMARK = "Benchmark"
    GRADE = "Grade"
    SUCCESS_METRICS = "Success Metrics"
