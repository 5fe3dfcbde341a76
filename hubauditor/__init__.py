"""
HubAuditor Backend Package.

FastAPI service that audits HubSpot CRM data quality: it pulls contacts,
deals and companies, computes deterministic metrics, asks Claude for a
written analysis, and returns a report of metric cards plus consolidated,
sanitized analysis sections.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, security and dependencies
    - models: Pydantic schemas and enums
    - services: Audit calculators, clients and the audit pipeline
    - sql: Parameterized SQL queries and DDL
"""

__version__ = "1.0.0"
