"""
DDL statements for the HubAuditor PostgreSQL schema.

Three tables back the service:
    - users: account credentials, display name and role
    - user_tokens: encrypted CRM access tokens, unique per (user_id, token_name)
    - audit_history: one row per completed audit run

All statements are idempotent (IF NOT EXISTS) so they can run on every
startup when auto_create_schema is enabled.
"""

from typing import List


CREATE_USERS_TABLE: str = """
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        email VARCHAR(255) UNIQUE NOT NULL,
        password_hash VARCHAR(255) NOT NULL,
        name VARCHAR(255),
        role VARCHAR(20) NOT NULL DEFAULT 'user',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_USER_TOKENS_TABLE: str = """
    CREATE TABLE IF NOT EXISTS user_tokens (
        id SERIAL PRIMARY KEY,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        token_name VARCHAR(255) NOT NULL,
        encrypted_token TEXT NOT NULL,
        token_type VARCHAR(50) NOT NULL DEFAULT 'hubspot',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        CONSTRAINT unique_user_token UNIQUE (user_id, token_name)
    )
"""

CREATE_AUDIT_HISTORY_TABLE: str = """
    CREATE TABLE IF NOT EXISTS audit_history (
        id SERIAL PRIMARY KEY,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        audit_type VARCHAR(50) NOT NULL,
        audit_data JSONB,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""

CREATE_INDEXES: str = """
    CREATE INDEX IF NOT EXISTS idx_user_tokens_user_id ON user_tokens (user_id);
    CREATE INDEX IF NOT EXISTS idx_audit_history_user_id ON audit_history (user_id);
    CREATE INDEX IF NOT EXISTS idx_audit_history_created_at ON audit_history (created_at)
"""

# Execution order matters: foreign keys reference users
SCHEMA_STATEMENTS: List[str] = [
    CREATE_USERS_TABLE,
    CREATE_USER_TOKENS_TABLE,
    CREATE_AUDIT_HISTORY_TABLE,
    CREATE_INDEXES,
]
