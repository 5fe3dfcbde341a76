"""
HubAuditor API package initialization.

This package contains the FastAPI router modules:
- auth: signup, login, logout, current user
- audit: run audits, list audit types
- tokens: saved CRM tokens
- profile: name/email and password changes
- history: the user's past audits
- admin: user listing and statistics (admin only)

All routers are mounted under /api by api_router.
"""

from fastapi import APIRouter

from hubauditor.api.auth import router as auth_router
from hubauditor.api.audit import router as audit_router
from hubauditor.api.tokens import router as tokens_router
from hubauditor.api.profile import router as profile_router
from hubauditor.api.history import router as history_router
from hubauditor.api.admin import router as admin_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(audit_router, prefix="/audit", tags=["audit"])
api_router.include_router(tokens_router, prefix="/tokens", tags=["tokens"])
api_router.include_router(profile_router, prefix="/profile", tags=["profile"])
api_router.include_router(history_router, prefix="/history", tags=["history"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])

__all__ = [
    "api_router",
    "auth_router",
    "audit_router",
    "tokens_router",
    "profile_router",
    "history_router",
    "admin_router",
]
