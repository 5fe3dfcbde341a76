"""
Package initialization file for HubAuditor models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from hubauditor.models directly.

Usage:
    from hubauditor.models import (
        AuditType,
        CrmRecord,
        ContactQualityMetrics,
        MetricGroup,
        AuditReport,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from hubauditor.models.enums import (
    AuditType,
    Severity,
    RecordKind,
    UserRole,
    TokenType,
    GenerationErrorKind,
    HubSpotErrorKind,
    CanonicalSection,
)


# =============================================================================
# Schemas
# =============================================================================

from hubauditor.models.schemas import (
    # -------------------------------------------------------------------------
    # Records and metrics
    # -------------------------------------------------------------------------
    parse_timestamp,
    CrmRecord,
    ContactQualityMetrics,
    PipelineHealthMetrics,
    CompanyEnrichmentMetrics,
    LeadScoringMetrics,
    SyncIntegrityMetrics,
    MetricsResult,

    # -------------------------------------------------------------------------
    # Display and report
    # -------------------------------------------------------------------------
    MetricCard,
    MetricGroup,
    AccountContext,
    AnalysisSection,
    RenderedSection,
    AuditRequest,
    AuditReport,
    AuditTypeInfo,

    # -------------------------------------------------------------------------
    # Accounts, tokens, history, admin
    # -------------------------------------------------------------------------
    SignupRequest,
    LoginRequest,
    UserResponse,
    AuthResponse,
    ProfileUpdateRequest,
    PasswordChangeRequest,
    MessageResponse,
    TokenSaveRequest,
    TokenDeleteRequest,
    TokenInfo,
    TokenListResponse,
    TokenValueResponse,
    AuditHistoryEntry,
    AuditHistoryResponse,
    UserListResponse,
    UserStats,
)


__all__ = [
    # Enums
    'AuditType',
    'Severity',
    'RecordKind',
    'UserRole',
    'TokenType',
    'GenerationErrorKind',
    'HubSpotErrorKind',
    'CanonicalSection',
    # Records and metrics
    'parse_timestamp',
    'CrmRecord',
    'ContactQualityMetrics',
    'PipelineHealthMetrics',
    'CompanyEnrichmentMetrics',
    'LeadScoringMetrics',
    'SyncIntegrityMetrics',
    'MetricsResult',
    # Display and report
    'MetricCard',
    'MetricGroup',
    'AccountContext',
    'AnalysisSection',
    'RenderedSection',
    'AuditRequest',
    'AuditReport',
    'AuditTypeInfo',
    # Accounts, tokens, history, admin
    'SignupRequest',
    'LoginRequest',
    'UserResponse',
    'AuthResponse',
    'ProfileUpdateRequest',
    'PasswordChangeRequest',
    'MessageResponse',
    'TokenSaveRequest',
    'TokenDeleteRequest',
    'TokenInfo',
    'TokenListResponse',
    'TokenValueResponse',
    'AuditHistoryEntry',
    'AuditHistoryResponse',
    'UserListResponse',
    'UserStats',
]
