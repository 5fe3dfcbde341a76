"""
Pydantic request/response models for the HubAuditor backend.

This module provides type-safe data validation and serialization for all API
contracts: CRM records fetched from HubSpot, the five per-audit metrics
shapes, display cards and groups, consolidated analysis sections, the audit
report envelope, and the account/token/history/admin schemas.

Field names are camelCase to match the JSON the dashboard consumes.
All models use Pydantic v2 syntax.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from hubauditor.models.enums import (
    AuditType,
    RecordKind,
    Severity,
    TokenType,
    UserRole,
)


_DATETIME_ADAPTER = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a HubSpot timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (``2024-01-15T10:30:00.000Z``), epoch numbers
    and datetime objects. Naive values are assumed to be UTC.

    Returns:
        The parsed datetime, or None when the value is absent or unparseable.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        parsed = _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# =============================================================================
# CRM Records
# =============================================================================


class CrmRecord(BaseModel):
    """
    A single HubSpot object (contact, deal or company).

    Properties are an open-ended mapping of string values. A property that is
    absent, None, or whitespace-only is "unknown"; use :meth:`prop` rather
    than indexing ``properties`` directly so every calculator applies the
    same presence rule.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "101",
                "kind": "contact",
                "createdAt": "2024-01-15T10:30:00Z",
                "updatedAt": "2024-03-01T08:00:00Z",
                "properties": {
                    "email": "jane@acme.com",
                    "lifecyclestage": "lead",
                    "hubspot_owner_id": "42"
                }
            }
        }
    )

    id: str = Field(
        ...,
        description="HubSpot object id"
    )
    kind: RecordKind = Field(
        ...,
        description="Object kind (contact, deal, company)"
    )
    createdAt: Optional[datetime] = Field(
        default=None,
        description="Object creation time reported by HubSpot"
    )
    updatedAt: Optional[datetime] = Field(
        default=None,
        description="Object last update time reported by HubSpot"
    )
    properties: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="Requested HubSpot properties; absent keys mean unknown"
    )

    def prop(self, name: str) -> Optional[str]:
        """Return the stripped property value, or None when missing or blank."""
        value = self.properties.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def has(self, name: str) -> bool:
        return self.prop(name) is not None

    def timestamp(self, name: str) -> Optional[datetime]:
        """Parse a date-valued property; None when missing or unparseable."""
        return parse_timestamp(self.prop(name))


# =============================================================================
# Metrics Results (one shape per audit type)
# =============================================================================


class ContactQualityMetrics(BaseModel):
    """Contact data quality metrics. Percentages are 0-100."""
    model_config = ConfigDict(frozen=True)

    totalContacts: int = Field(..., ge=0)
    duplicates: int = Field(..., ge=0, description="Sum of (n - 1) over case-insensitive email groups")
    duplicateRate: float = Field(..., ge=0, le=100)
    missingEmail: int = Field(..., ge=0)
    missingEmailPct: float = Field(..., ge=0, le=100)
    missingPhone: int = Field(..., ge=0)
    missingPhonePct: float = Field(..., ge=0, le=100)
    hardBounceRate: float = Field(..., ge=0, le=100)
    unassignedContacts: int = Field(..., ge=0)
    unassignedPct: float = Field(..., ge=0, le=100)
    staleContacts: int = Field(..., ge=0)
    staleContactsPct: float = Field(..., ge=0, le=100)
    lifecycleDistribution: Dict[str, int] = Field(default_factory=dict)


class PipelineHealthMetrics(BaseModel):
    """Deal pipeline health metrics. Ages are in whole days."""
    model_config = ConfigDict(frozen=True)

    totalDeals: int = Field(..., ge=0)
    dealsByStage: Dict[str, int] = Field(default_factory=dict)
    avgDealAgeByStage: Dict[str, int] = Field(
        default_factory=dict,
        description="Only stages with at least one dated deal appear"
    )
    stuckDeals: int = Field(..., ge=0)
    stuckDealsPct: float = Field(..., ge=0, le=100)
    missingCloseDate: int = Field(..., ge=0)
    missingCloseDatePct: float = Field(..., ge=0, le=100)
    missingAmount: int = Field(..., ge=0)
    missingAmountPct: float = Field(..., ge=0, le=100)
    totalPipelineValue: float = Field(..., description="Sum of numeric deal amounts")


class CompanyEnrichmentMetrics(BaseModel):
    """Company enrichment metrics."""
    model_config = ConfigDict(frozen=True)

    totalCompanies: int = Field(..., ge=0)
    missingIndustry: int = Field(..., ge=0)
    missingIndustryPct: float = Field(..., ge=0, le=100)
    missingRevenue: int = Field(..., ge=0)
    missingRevenuePct: float = Field(..., ge=0, le=100)
    missingEmployees: int = Field(..., ge=0)
    missingEmployeesPct: float = Field(..., ge=0, le=100)
    companyContactCoverage: float = Field(..., ge=0, le=100)
    enrichmentScore: float = Field(..., ge=0, le=100)


class LeadScoringMetrics(BaseModel):
    """Lead scoring and segmentation metrics."""
    model_config = ConfigDict(frozen=True)

    contactsByLifecycle: Dict[str, int] = Field(default_factory=dict)
    leadScoreDistribution: Dict[str, int] = Field(default_factory=dict)
    avgTimeToConversion: Dict[str, int] = Field(
        default_factory=dict,
        description='{"Average Days": n}; 0 when no customer records qualify'
    )
    segmentOverlap: int = Field(default=0, ge=0)
    engagementRate: float = Field(..., ge=0, le=100)


class SyncIntegrityMetrics(BaseModel):
    """
    Sync integrity metrics.

    Integration status is not available through a private-app token, so
    this is a placeholder shape: dataAvailable is False and every counter is
    zeroed unless integration data is supplied.
    """
    model_config = ConfigDict(frozen=True)

    activeIntegrations: int = Field(default=0, ge=0)
    recentSyncErrors: int = Field(default=0, ge=0)
    failedRecords: Dict[str, int] = Field(default_factory=dict)
    propertyMappingCoverage: float = Field(default=0, ge=0, le=100)
    lastSuccessfulSync: str = Field(default="Unknown")
    dataAvailable: bool = Field(default=False)


MetricsResult = Union[
    ContactQualityMetrics,
    PipelineHealthMetrics,
    CompanyEnrichmentMetrics,
    LeadScoringMetrics,
    SyncIntegrityMetrics,
]


# =============================================================================
# Display Models
# =============================================================================


class MetricCard(BaseModel):
    """A single sidebar metric: label, value and optional severity tag."""
    label: str = Field(..., description="Display label")
    value: Union[int, float, str] = Field(..., description="Number or pre-formatted string")
    percentage: Optional[float] = Field(default=None, description="Share of total, 0-100")
    severity: Optional[Severity] = Field(default=None)
    description: Optional[str] = Field(default=None, description="Plain-English explanation")


class MetricGroup(BaseModel):
    """A titled, ordered list of metric cards."""
    title: str
    metrics: List[MetricCard] = Field(default_factory=list)


class AccountContext(BaseModel):
    """Optional business context the user supplies to sharpen the analysis."""
    model_config = ConfigDict(str_strip_whitespace=True)

    industry: Optional[str] = Field(default=None, max_length=200)
    companyType: Optional[Literal['B2B', 'B2C', 'B2B2C']] = Field(default=None)
    estimatedARR: Optional[str] = Field(default=None, max_length=100)
    teamSize: Optional[str] = Field(default=None, max_length=100)


class AnalysisSection(BaseModel):
    """A titled block of raw analysis text."""
    title: str
    content: str


class RenderedSection(BaseModel):
    """An analysis section ready for display: icon plus sanitized HTML."""
    title: str
    icon: str
    content: str = Field(..., description="Raw markdown body")
    html: str = Field(..., description="Sanitized HTML rendering of content")


# =============================================================================
# Audit Request / Response
# =============================================================================


class AuditRequest(BaseModel):
    """
    Body of POST /api/audit.

    Either hubspotToken (used once, never stored) or tokenName (a saved token
    of the signed-in user) must be supplied.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "auditType": "contact-quality",
                "hubspotToken": "pat-na1-...",
                "accountContext": {"industry": "SaaS", "companyType": "B2B"}
            }
        }
    )

    auditType: AuditType
    hubspotToken: Optional[str] = Field(default=None, min_length=1)
    tokenName: Optional[str] = Field(default=None, min_length=1, max_length=100)
    accountContext: Optional[AccountContext] = None


class AuditReport(BaseModel):
    """Response envelope for one audit run. Not persisted."""
    auditType: AuditType
    timestamp: str = Field(..., description="ISO-8601 time the report was produced")
    # Sync integrity has no required fields, so it must stay the last candidate
    metrics: MetricsResult = Field(..., union_mode="left_to_right")
    metricGroups: List[MetricGroup]
    analysis: str = Field(..., description="Raw analysis text from the generation service")
    sections: List[RenderedSection] = Field(default_factory=list)
    accountContext: Optional[AccountContext] = None


class AuditTypeInfo(BaseModel):
    auditType: AuditType
    displayName: str
    description: str


# =============================================================================
# Accounts
# =============================================================================


class SignupRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=255, pattern=r'^[^@\s]+@[^@\s]+$')
    password: str = Field(..., min_length=1)
    name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user row; never carries the password hash."""
    id: int
    email: str
    name: Optional[str] = None
    role: UserRole = UserRole.USER
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_record(cls, row: Any) -> "UserResponse":
        return cls(
            id=row['id'],
            email=row['email'],
            name=row.get('name'),
            role=UserRole(row['role']) if row.get('role') else UserRole.USER,
            createdAt=row.get('created_at'),
            updatedAt=row.get('updated_at'),
        )


class AuthResponse(BaseModel):
    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255, pattern=r'^[^@\s]+@[^@\s]+$')


class PasswordChangeRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# =============================================================================
# Saved Tokens
# =============================================================================


class TokenSaveRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    tokenName: str = Field(..., min_length=1, max_length=100)
    token: str = Field(..., min_length=1)
    tokenType: TokenType = TokenType.HUBSPOT


class TokenDeleteRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    tokenName: str = Field(..., min_length=1, max_length=100)


class TokenInfo(BaseModel):
    """Saved token metadata; the token value itself is never listed."""
    tokenName: str
    tokenType: TokenType
    createdAt: Optional[datetime] = None


class TokenListResponse(BaseModel):
    tokens: List[TokenInfo] = Field(default_factory=list)


class TokenValueResponse(BaseModel):
    tokenName: str
    token: str


# =============================================================================
# Audit History and Admin
# =============================================================================


class AuditHistoryEntry(BaseModel):
    id: int
    userId: int
    auditType: str
    auditData: Dict[str, Any] = Field(default_factory=dict)
    createdAt: Optional[datetime] = None


class AuditHistoryResponse(BaseModel):
    history: List[AuditHistoryEntry] = Field(default_factory=list)


class UserListResponse(BaseModel):
    users: List[UserResponse] = Field(default_factory=list)


class UserStats(BaseModel):
    totalUsers: int = 0
    adminUsers: int = 0
    newUsers7d: int = 0
    totalTokens: int = 0
    totalAudits: int = 0
