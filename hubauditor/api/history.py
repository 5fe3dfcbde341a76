"""
FastAPI router for audit history.

Implements GET /api/history: the signed-in user's past audits, newest first.
"""

from fastapi import APIRouter, Query

from hubauditor.core.dependencies import CurrentUserDep, DBSessionDep
from hubauditor.models.schemas import AuditHistoryResponse
from hubauditor.services.audit_history import DEFAULT_HISTORY_LIMIT, list_audit_history


router = APIRouter()


@router.get("", response_model=AuditHistoryResponse)
async def get_history(
    user: CurrentUserDep,
    db: DBSessionDep,
    limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=500),
) -> AuditHistoryResponse:
    return AuditHistoryResponse(history=await list_audit_history(db, user.id, limit))
