"""
Company Enrichment audit.

Measures how complete company records are (industry, revenue, employee
count) and how many companies have at least one associated contact.
"""

from typing import List, Optional, Sequence

from hubauditor.models.enums import Severity
from hubauditor.models.schemas import (
    CompanyEnrichmentMetrics,
    CrmRecord,
    MetricCard,
    MetricGroup,
)
from hubauditor.services.metric_utils import (
    count_missing,
    format_pct,
    percentage,
    severity_above,
    severity_below,
)


# Fields that make up the enrichment score, equally weighted
KEY_FIELDS: tuple = ("name", "domain", "industry", "annualrevenue", "numberofemployees")


def contact_coverage(
    companies: Sequence[CrmRecord],
    contacts: Optional[Sequence[CrmRecord]],
) -> float:
    """
    Percentage of companies referenced by at least one contact's
    associatedcompanyid. 0 when no contact list is supplied.
    """
    if not companies or not contacts:
        return 0.0
    associated = {
        company_id
        for company_id in (contact.prop("associatedcompanyid") for contact in contacts)
        if company_id
    }
    covered = sum(1 for company in companies if company.id in associated)
    return percentage(covered, len(companies))


def enrichment_score(companies: Sequence[CrmRecord]) -> float:
    """Mean share of KEY_FIELDS present per company, as a percentage."""
    if not companies:
        return 0.0
    per_company = [
        percentage(sum(1 for field in KEY_FIELDS if company.has(field)), len(KEY_FIELDS))
        for company in companies
    ]
    return min(100.0, sum(per_company) / len(per_company))


def calculate_company_enrichment(
    companies: Sequence[CrmRecord],
    contacts: Optional[Sequence[CrmRecord]] = None,
) -> CompanyEnrichmentMetrics:
    """
    Calculate company enrichment metrics.

    Args:
        companies: Company records.
        contacts: Optional contact records used for relationship coverage.
    """
    total = len(companies)
    missing_industry = count_missing(companies, "industry")
    missing_revenue = count_missing(companies, "annualrevenue")
    missing_employees = count_missing(companies, "numberofemployees")

    return CompanyEnrichmentMetrics(
        totalCompanies=total,
        missingIndustry=missing_industry,
        missingIndustryPct=percentage(missing_industry, total),
        missingRevenue=missing_revenue,
        missingRevenuePct=percentage(missing_revenue, total),
        missingEmployees=missing_employees,
        missingEmployeesPct=percentage(missing_employees, total),
        companyContactCoverage=contact_coverage(companies, contacts),
        enrichmentScore=enrichment_score(companies),
    )


def format_company_enrichment(metrics: CompanyEnrichmentMetrics) -> List[MetricGroup]:
    return [
        MetricGroup(
            title="Overview",
            metrics=[
                MetricCard(
                    label="Total Companies",
                    value=metrics.totalCompanies,
                    severity=Severity.GOOD,
                    description="The total number of companies in your HubSpot database.",
                ),
                MetricCard(
                    label="Overall Enrichment Score",
                    value=format_pct(metrics.enrichmentScore),
                    severity=severity_below(metrics.enrichmentScore, 50, 70),
                    description="Average completeness of name, domain, industry, revenue "
                                "and employee count across companies.",
                ),
            ],
        ),
        MetricGroup(
            title="Missing Data",
            metrics=[
                MetricCard(
                    label="Missing Industry",
                    value=metrics.missingIndustry,
                    percentage=metrics.missingIndustryPct,
                    severity=severity_above(metrics.missingIndustryPct, 40, 20),
                    description="Companies without an industry classification.",
                ),
                MetricCard(
                    label="Missing Revenue",
                    value=metrics.missingRevenue,
                    percentage=metrics.missingRevenuePct,
                    severity=severity_above(metrics.missingRevenuePct, 50, 30),
                    description="Companies without annual revenue data.",
                ),
                MetricCard(
                    label="Missing Employee Count",
                    value=metrics.missingEmployees,
                    percentage=metrics.missingEmployeesPct,
                    description="Companies without a number of employees.",
                ),
            ],
        ),
        MetricGroup(
            title="Relationship Coverage",
            metrics=[
                MetricCard(
                    label="Companies with Contacts",
                    value=format_pct(metrics.companyContactCoverage),
                    severity=severity_below(metrics.companyContactCoverage, 60, 80),
                    description="Companies with at least one associated contact.",
                ),
            ],
        ),
    ]
