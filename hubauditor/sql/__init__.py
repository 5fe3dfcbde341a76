"""
SQL Query Module for the HubAuditor backend.

Provides parameterized SQL for:
- Schema creation (schema)
- User accounts and saved CRM tokens (account_queries)
- Audit history records (audit_queries)

Follows the Repository Pattern for clean separation between business logic
and data access: services import the statements from here and execute them
on an injected asyncpg connection.

Example usage:
    from hubauditor.sql import SCHEMA_STATEMENTS, INSERT_USER

    for statement in SCHEMA_STATEMENTS:
        await conn.execute(statement)
"""

# =============================================================================
# SCHEMA - DDL executed at startup
# =============================================================================

from hubauditor.sql.schema import SCHEMA_STATEMENTS

# =============================================================================
# ACCOUNT QUERIES - users and user_tokens
# =============================================================================

from hubauditor.sql.account_queries import (
    USER_COLUMNS,
    INSERT_USER,
    SELECT_USER_BY_ID,
    SELECT_USER_BY_EMAIL,
    SELECT_USER_CREDENTIALS_BY_EMAIL,
    SELECT_PASSWORD_HASH_BY_ID,
    UPDATE_USER_PROFILE,
    UPDATE_PASSWORD_HASH,
    SELECT_ALL_USERS,
    SELECT_USER_STATS,
    UPSERT_USER_TOKEN,
    SELECT_ENCRYPTED_TOKEN,
    DELETE_USER_TOKEN,
    SELECT_USER_TOKEN_LIST,
)

# =============================================================================
# AUDIT QUERIES - audit_history
# =============================================================================

from hubauditor.sql.audit_queries import (
    INSERT_AUDIT_RECORD,
    SELECT_AUDIT_HISTORY,
)

__all__ = [
    'SCHEMA_STATEMENTS',
    'USER_COLUMNS',
    'INSERT_USER',
    'SELECT_USER_BY_ID',
    'SELECT_USER_BY_EMAIL',
    'SELECT_USER_CREDENTIALS_BY_EMAIL',
    'SELECT_PASSWORD_HASH_BY_ID',
    'UPDATE_USER_PROFILE',
    'UPDATE_PASSWORD_HASH',
    'SELECT_ALL_USERS',
    'SELECT_USER_STATS',
    'UPSERT_USER_TOKEN',
    'SELECT_ENCRYPTED_TOKEN',
    'DELETE_USER_TOKEN',
    'SELECT_USER_TOKEN_LIST',
    'INSERT_AUDIT_RECORD',
    'SELECT_AUDIT_HISTORY',
]
