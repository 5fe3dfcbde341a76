"""
Audit History Repository

Records that an audit ran for a user, with a small JSON summary, and lists a
user's past runs. The full report is not stored.
"""

import json
import logging
from typing import Any, Dict, List

from asyncpg import Connection

from hubauditor.models.schemas import AuditHistoryEntry, AuditReport
from hubauditor.sql import INSERT_AUDIT_RECORD, SELECT_AUDIT_HISTORY


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT: int = 50


def summarize_report(report: AuditReport) -> Dict[str, Any]:
    """The audit_data stored for one run: metrics plus section titles."""
    return {
        "timestamp": report.timestamp,
        "metrics": report.metrics.model_dump(mode="json"),
        "sections": [section.title for section in report.sections],
        "accountContext": (
            report.accountContext.model_dump(mode="json", exclude_none=True)
            if report.accountContext else None
        ),
    }


def _entry_from_row(row: Any) -> AuditHistoryEntry:
    audit_data = row["audit_data"]
    # asyncpg hands JSONB back as text unless a codec is registered
    if isinstance(audit_data, str):
        audit_data = json.loads(audit_data)
    return AuditHistoryEntry(
        id=row["id"],
        userId=row["user_id"],
        auditType=row["audit_type"],
        auditData=audit_data or {},
        createdAt=row["created_at"],
    )


async def record_audit(conn: Connection, user_id: int, report: AuditReport) -> AuditHistoryEntry:
    row = await conn.fetchrow(
        INSERT_AUDIT_RECORD,
        user_id,
        report.auditType.value,
        json.dumps(summarize_report(report)),
    )
    logger.info(f"Recorded {report.auditType.value} audit for user {user_id}")
    return _entry_from_row(row)


async def list_audit_history(
    conn: Connection,
    user_id: int,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> List[AuditHistoryEntry]:
    """A user's audits, newest first."""
    rows = await conn.fetch(SELECT_AUDIT_HISTORY, user_id, limit)
    return [_entry_from_row(row) for row in rows]
