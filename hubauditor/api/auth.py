"""
FastAPI router for account signup, login and session management.

Implements:
- POST /api/auth/signup: create an account and start a session
- POST /api/auth/login: verify credentials and start a session
- POST /api/auth/logout: clear the session cookie
- GET /api/auth/me: the signed-in user

Sessions are HS256 JWTs in an http-only cookie (``auth-token``) that
expires after ``jwt_expiry_days``.
"""

import logging

from fastapi import APIRouter, Response, status

from hubauditor.api.errors import api_error
from hubauditor.core.config import Settings
from hubauditor.core.dependencies import CurrentUserDep, DBSessionDep, SettingsDep
from hubauditor.core.security import create_access_token
from hubauditor.models.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    UserResponse,
)
from hubauditor.services.users import EmailAlreadyRegisteredError, create_user, verify_user


logger = logging.getLogger(__name__)

router = APIRouter()

SECONDS_PER_DAY: int = 24 * 60 * 60


def set_session_cookie(response: Response, user: UserResponse, settings: Settings) -> None:
    token = create_access_token(user.id, user.email, settings)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_expiry_days * SECONDS_PER_DAY,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite='lax',
        path='/',
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    response: Response,
    db: DBSessionDep,
    settings: SettingsDep,
) -> AuthResponse:
    """
    Create an account.

    Raises:
        HTTPException 400: Password shorter than min_password_length.
        HTTPException 409: Email already registered.
    """
    if len(body.password) < settings.min_password_length:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            "invalid_password",
            f"Password must be at least {settings.min_password_length} characters long",
        )

    try:
        user = await create_user(db, body.email, body.password, body.name, settings.bcrypt_rounds)
    except EmailAlreadyRegisteredError:
        logger.warning("Signup rejected: email already registered")
        raise api_error(status.HTTP_409_CONFLICT, "email_taken", "An account with this email already exists")

    set_session_cookie(response, user, settings)
    return AuthResponse(user=user)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    db: DBSessionDep,
    settings: SettingsDep,
) -> AuthResponse:
    user = await verify_user(db, body.email, body.password)
    if user is None:
        logger.warning("Login rejected: invalid credentials")
        raise api_error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials", "Invalid email or password")

    set_session_cookie(response, user, settings)
    return AuthResponse(user=user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, settings: SettingsDep) -> MessageResponse:
    response.delete_cookie(key=settings.auth_cookie_name, path='/')
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=AuthResponse)
async def me(user: CurrentUserDep) -> AuthResponse:
    return AuthResponse(user=user)
