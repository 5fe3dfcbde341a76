"""
Prompt Builder

Serializes an audit's metrics and optional account context into the
instruction sent to the generation service. Each metric field becomes a
labeled line; distribution fields become an indented sub-list. The prompt
asks for ``##`` section headings, which the section consolidator splits on.

Example output fragment:

    QUANTITATIVE METRICS:
    - Total Contacts: 1200
    - Missing Email %: 12.5

    Lifecycle Distribution:
      - lead: 700
      - customer: 500
"""

import re
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from hubauditor.models.enums import AuditType
from hubauditor.models.schemas import AccountContext
from hubauditor.services.audit_registry import display_name


NOT_SPECIFIED: str = "Not specified"

# Section headings requested from the generation service, in order
REQUESTED_SECTIONS: List[str] = [
    "Overview",
    "Key Findings",
    "Business Impact",
    "Recommendations",
    "Benchmark",
]


def format_label(key: str) -> str:
    """
    Turn a camelCase field name into a spaced, title-cased label.

    >>> format_label("missingEmailPct")
    'Missing Email %'
    >>> format_label("avgDealAgeByStage")
    'Average Deal Age By Stage'
    """
    label = re.sub(r"([A-Z])", r" \1", key)
    label = label[:1].upper() + label[1:]
    label = re.sub(r"Pct$", "%", label)
    label = label.replace("Avg", "Average")
    return re.sub(r"\s+", " ", label).strip()


def format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return str(round(value, 2))
    return str(value)


def format_metrics(metrics: Mapping[str, Any]) -> str:
    """One line per field; mappings render as a label line plus indented entries."""
    lines: List[str] = []
    for key, value in metrics.items():
        label = format_label(key)
        if isinstance(value, Mapping):
            lines.append(f"\n{label}:")
            if not value:
                lines.append("  - (none)")
            for sub_key, sub_value in value.items():
                lines.append(f"  - {format_label(str(sub_key))}: {format_value(sub_value)}")
        else:
            lines.append(f"- {label}: {format_value(value)}")
    return "\n".join(lines)


def format_account_context(account_context: Optional[AccountContext]) -> str:
    if account_context is None:
        return ""
    return (
        "ACCOUNT CONTEXT:\n"
        f"- Industry: {account_context.industry or NOT_SPECIFIED}\n"
        f"- Company Type: {account_context.companyType or NOT_SPECIFIED}\n"
        f"- Estimated ARR: {account_context.estimatedARR or NOT_SPECIFIED}\n"
        f"- Team Size: {account_context.teamSize or NOT_SPECIFIED}\n"
    )


def build_prompt(
    audit_type: AuditType,
    metrics: BaseModel,
    account_context: Optional[AccountContext] = None,
) -> str:
    """
    Build the analysis prompt for one audit run.

    Args:
        audit_type: Which audit produced the metrics.
        metrics: Any of the five metrics models.
        account_context: Optional business context from the user.

    Returns:
        The full prompt string.
    """
    business = ""
    industry = "industry"
    if account_context is not None:
        descriptor = " ".join(
            part for part in (account_context.industry, account_context.companyType) if part
        )
        if descriptor:
            business = f" for a {descriptor} business"
        industry = account_context.industry or industry

    headings = "\n".join(f"## {title}" for title in REQUESTED_SECTIONS)
    context_block = format_account_context(account_context)

    return f"""You are a HubSpot CRM expert auditing a company's CRM data.

{context_block}
AUDIT TYPE: {display_name(audit_type)}

QUANTITATIVE METRICS:
{format_metrics(metrics.model_dump())}

Based on these metrics{business}:

1. **Assess Data Health**: Evaluate whether the current state is good, concerning, or critical
2. **Identify Root Causes**: Explain the likely reasons for key issues
3. **Quantify Business Impact**: Estimate the real-world cost or impact of these issues (e.g., lost revenue, wasted effort)
4. **Provide Actionable Recommendations**: Give 3-5 specific, prioritized steps to improve, ordered by ROI
5. **Benchmark Against Industry**: Compare to typical {industry} standards if applicable

Respond in markdown, using exactly these level-2 headings in this order:
{headings}

Under Overview write 2-3 sentences summarizing overall health. Use bullet points under Key Findings, quantified costs and risks under Business Impact, and a numbered list under Recommendations.

Be specific, data-driven, and actionable. Avoid generic advice."""
