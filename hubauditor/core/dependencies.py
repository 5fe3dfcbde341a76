"""
FastAPI dependency injection module for the HubAuditor backend.

Long-lived resources are created once by the lifespan in hubauditor.main and
stored on ``app.state``; the dependencies here hand them to endpoint
handlers. Nothing is created lazily on first use.

Key Dependencies Provided:
- get_db_pool: The asyncpg pool (``app.state.db_pool``), or None when the
  database was unavailable at startup
- get_db_session: Yields a connection from that pool for the whole request
- get_settings_dependency: Returns the cached Settings
- get_http_client: The shared httpx.AsyncClient (``app.state.http_client``)
- get_generation_client: The GenerationClient (``app.state.generation_client``)
- get_current_user_optional: User from the session cookie, or None
- get_current_user: Same, but 401 when not signed in (503 without a database)
- get_admin_user: Same, but 403 unless the user is an admin

Testing:
    Override any dependency through ``app.dependency_overrides``:

        app.dependency_overrides[get_db_pool] = lambda: fake_pool
        app.dependency_overrides[get_settings_dependency] = lambda: test_settings

Usage Examples:
    @router.get("/history")
    async def list_history(db: DBSessionDep, user: CurrentUserDep):
        ...
"""

import logging
from typing import AsyncGenerator, Annotated, Optional

import httpx
from asyncpg import Connection, Pool
from fastapi import Depends, HTTPException, Request, status

from hubauditor.core.config import Settings, get_settings
from hubauditor.core.security import verify_access_token
from hubauditor.models.enums import UserRole
from hubauditor.models.schemas import UserResponse
from hubauditor.services.generation_client import GenerationClient
from hubauditor.services.users import get_user_by_id


logger = logging.getLogger(__name__)


def _unavailable(description: str) -> HTTPException:
    logger.error(f"{description} is not available; was the application lifespan run?")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"error": "service_unavailable", "message": f"{description} is not available"},
    )


def _state_resource(request: Request, name: str, description: str):
    resource = getattr(request.app.state, name, None)
    if resource is None:
        raise _unavailable(description)
    return resource


# =============================================================================
# Database Dependencies
# =============================================================================

def get_db_pool(request: Request) -> Optional[Pool]:
    """
    The application's connection pool, or None if startup could not create it.

    Endpoints that reach the database only for a few short steps take the
    pool and acquire around each step, so no connection is held while they
    wait on HubSpot or the generation service.
    """
    return getattr(request.app.state, 'db_pool', None)


DBPoolDep = Annotated[Optional[Pool], Depends(get_db_pool)]


async def get_db_session(pool: DBPoolDep) -> AsyncGenerator[Connection, None]:
    """
    Yield a database connection from the application's pool.

    The connection is released back to the pool when the endpoint completes,
    whether or not it raised.

    Raises:
        HTTPException 503: If the pool was not created at startup.
    """
    if pool is None:
        raise _unavailable('Database')
    async with pool.acquire() as connection:
        yield connection


# =============================================================================
# Settings and Client Dependencies
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton.

    A thin wrapper around get_settings() so tests can replace it through
    ``app.dependency_overrides[get_settings_dependency]``.
    """
    return get_settings()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The shared outbound HTTP client used for HubSpot calls."""
    return _state_resource(request, 'http_client', 'HTTP client')


def get_generation_client(request: Request) -> GenerationClient:
    """
    The text-generation client.

    Raises:
        HTTPException 500: If CLAUDE_API_KEY is not configured.
    """
    client = getattr(request.app.state, 'generation_client', None)
    if client is None:
        logger.error("Audit requested but CLAUDE_API_KEY is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "not_configured", "message": "Claude API key not configured on server"},
        )
    return client


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

DBSessionDep = Annotated[Connection, Depends(get_db_session)]

HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]

GenerationClientDep = Annotated[GenerationClient, Depends(get_generation_client)]


# =============================================================================
# Authentication Dependencies
# =============================================================================

async def get_current_user_optional(
    request: Request,
    pool: DBPoolDep,
    settings: SettingsDep,
) -> Optional[UserResponse]:
    """
    Resolve the signed-in user from the session cookie.

    A connection is borrowed only for the user lookup.

    Returns:
        The user, or None when there is no cookie, the token is invalid or
        expired, the user no longer exists, or the database is unavailable.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None

    payload = verify_access_token(token, settings)
    if payload is None:
        return None

    if pool is None:
        logger.warning(f"Database unavailable; treating user {payload.userId} as anonymous")
        return None

    async with pool.acquire() as connection:
        return await get_user_by_id(connection, payload.userId)


CurrentUserOptionalDep = Annotated[Optional[UserResponse], Depends(get_current_user_optional)]


async def get_current_user(user: CurrentUserOptionalDep, pool: DBPoolDep) -> UserResponse:
    """
    Require a signed-in user.

    Raises:
        HTTPException 503: If the database is unavailable, so no session can be checked.
        HTTPException 401: If not authenticated.
    """
    if user is None:
        if pool is None:
            raise _unavailable('Database')
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "not_authenticated", "message": "Not authenticated"},
        )
    return user


CurrentUserDep = Annotated[UserResponse, Depends(get_current_user)]


async def get_admin_user(user: CurrentUserDep) -> UserResponse:
    """
    Require a signed-in admin.

    Raises:
        HTTPException 403: If the user is not an admin.
    """
    if user.role != UserRole.ADMIN:
        logger.warning(f"User {user.id} denied admin access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "message": "Admin access required"},
        )
    return user


AdminUserDep = Annotated[UserResponse, Depends(get_admin_user)]
