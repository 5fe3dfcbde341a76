"""
Core infrastructure package for the HubAuditor backend.

Provides:
- Configuration management via pydantic-settings
- asyncpg pool lifecycle (explicit handles, no module state)
- Password hashing, session tokens and token encryption
- FastAPI dependency injection utilities

Usage Examples:
    from hubauditor.core import get_settings, create_db_pool, DBSessionDep

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.db_pool = await create_db_pool(get_settings())
        yield
        await close_db_pool(app.state.db_pool)
"""

# =============================================================================
# Re-exports from hubauditor.core.config
# =============================================================================
from hubauditor.core.config import Settings, get_settings

# =============================================================================
# Re-exports from hubauditor.core.database
# =============================================================================
from hubauditor.core.database import create_db_pool, init_schema, close_db_pool

# =============================================================================
# Re-exports from hubauditor.core.dependencies
# =============================================================================
from hubauditor.core.dependencies import (
    get_db_pool,
    get_db_session,
    get_settings_dependency,
    get_http_client,
    get_generation_client,
    get_current_user_optional,
    get_current_user,
    get_admin_user,
    SettingsDep,
    DBPoolDep,
    DBSessionDep,
    HttpClientDep,
    GenerationClientDep,
    CurrentUserOptionalDep,
    CurrentUserDep,
    AdminUserDep,
)

__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'create_db_pool',
    'init_schema',
    'close_db_pool',
    # FastAPI dependency injection (from dependencies.py)
    'get_db_pool',
    'get_db_session',
    'get_settings_dependency',
    'get_http_client',
    'get_generation_client',
    'get_current_user_optional',
    'get_current_user',
    'get_admin_user',
    'SettingsDep',
    'DBPoolDep',
    'DBSessionDep',
    'HttpClientDep',
    'GenerationClientDep',
    'CurrentUserOptionalDep',
    'CurrentUserDep',
    'AdminUserDep',
]
