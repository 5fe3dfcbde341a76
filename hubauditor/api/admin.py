"""
FastAPI router for the admin dashboard.

Implements:
- GET /api/admin/users: every account, newest first
- GET /api/admin/stats: user, token and audit counts

Both endpoints require the ``admin`` role (403 otherwise).
"""

from fastapi import APIRouter

from hubauditor.core.dependencies import AdminUserDep, DBSessionDep
from hubauditor.models.schemas import UserListResponse, UserStats
from hubauditor.services.users import get_user_stats, list_users


router = APIRouter()


@router.get("/users", response_model=UserListResponse)
async def admin_list_users(admin: AdminUserDep, db: DBSessionDep) -> UserListResponse:
    return UserListResponse(users=await list_users(db))


@router.get("/stats", response_model=UserStats)
async def admin_stats(admin: AdminUserDep, db: DBSessionDep) -> UserStats:
    return await get_user_stats(db)
