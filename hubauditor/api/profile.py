"""
FastAPI router for profile management.

Implements:
- PUT /api/profile/update: change name and/or email
- PUT /api/profile/password: change password (current password required)
"""

import logging

from fastapi import APIRouter, status

from hubauditor.api.errors import api_error
from hubauditor.core.dependencies import CurrentUserDep, DBSessionDep, SettingsDep
from hubauditor.models.schemas import (
    AuthResponse,
    MessageResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
)
from hubauditor.services.users import (
    EmailAlreadyRegisteredError,
    change_password,
    update_user_profile,
)


logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/update", response_model=AuthResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    user: CurrentUserDep,
    db: DBSessionDep,
) -> AuthResponse:
    if body.name is None and body.email is None:
        raise api_error(status.HTTP_400_BAD_REQUEST, "missing_fields", "Nothing to update")

    try:
        updated = await update_user_profile(db, user.id, name=body.name, email=body.email)
    except EmailAlreadyRegisteredError:
        raise api_error(status.HTTP_409_CONFLICT, "email_taken", "Email is already in use")

    if updated is None:
        raise api_error(status.HTTP_404_NOT_FOUND, "user_not_found", "User not found")
    return AuthResponse(user=updated)


@router.put("/password", response_model=MessageResponse)
async def update_password(
    body: PasswordChangeRequest,
    user: CurrentUserDep,
    db: DBSessionDep,
    settings: SettingsDep,
) -> MessageResponse:
    if len(body.newPassword) < settings.min_password_length:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            "invalid_password",
            f"New password must be at least {settings.min_password_length} characters long",
        )

    changed = await change_password(
        db, user.id, body.currentPassword, body.newPassword, settings.bcrypt_rounds,
    )
    if not changed:
        logger.warning(f"Password change rejected for user {user.id}")
        raise api_error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials", "Current password is incorrect")
    return MessageResponse(message="Password changed successfully")
