"""
Parameterized SQL for user accounts and saved CRM tokens.

All queries use asyncpg positional placeholders ($1, $2, ...). Password
hashes are only ever selected by the queries that verify credentials; every
other user query returns the public columns in USER_COLUMNS.
"""


USER_COLUMNS: str = "id, email, name, role, created_at, updated_at"


# =============================================================================
# USERS
# =============================================================================

INSERT_USER: str = f"""
    INSERT INTO users (email, password_hash, name)
    VALUES ($1, $2, $3)
    RETURNING {USER_COLUMNS}
"""

SELECT_USER_BY_ID: str = f"""
    SELECT {USER_COLUMNS}
    FROM users
    WHERE id = $1
"""

SELECT_USER_BY_EMAIL: str = f"""
    SELECT {USER_COLUMNS}
    FROM users
    WHERE email = $1
"""

SELECT_USER_CREDENTIALS_BY_EMAIL: str = f"""
    SELECT {USER_COLUMNS}, password_hash
    FROM users
    WHERE email = $1
"""

SELECT_PASSWORD_HASH_BY_ID: str = """
    SELECT password_hash
    FROM users
    WHERE id = $1
"""

UPDATE_USER_PROFILE: str = f"""
    UPDATE users
    SET name = COALESCE($2, name),
        email = COALESCE($3, email),
        updated_at = NOW()
    WHERE id = $1
    RETURNING {USER_COLUMNS}
"""

UPDATE_PASSWORD_HASH: str = """
    UPDATE users
    SET password_hash = $2,
        updated_at = NOW()
    WHERE id = $1
"""

SELECT_ALL_USERS: str = f"""
    SELECT {USER_COLUMNS}
    FROM users
    ORDER BY created_at DESC
"""

SELECT_USER_STATS: str = """
    SELECT
        (SELECT COUNT(*) FROM users) AS total_users,
        (SELECT COUNT(*) FROM users WHERE role = 'admin') AS admin_users,
        (SELECT COUNT(*) FROM users WHERE created_at >= NOW() - INTERVAL '7 days') AS new_users_7d,
        (SELECT COUNT(*) FROM user_tokens) AS total_tokens,
        (SELECT COUNT(*) FROM audit_history) AS total_audits
"""


# =============================================================================
# USER TOKENS
# =============================================================================

UPSERT_USER_TOKEN: str = """
    INSERT INTO user_tokens (user_id, token_name, encrypted_token, token_type)
    VALUES ($1, $2, $3, $4)
    ON CONFLICT (user_id, token_name)
    DO UPDATE SET
        encrypted_token = EXCLUDED.encrypted_token,
        token_type = EXCLUDED.token_type,
        updated_at = NOW()
"""

SELECT_ENCRYPTED_TOKEN: str = """
    SELECT encrypted_token
    FROM user_tokens
    WHERE user_id = $1 AND token_name = $2
"""

DELETE_USER_TOKEN: str = """
    DELETE FROM user_tokens
    WHERE user_id = $1 AND token_name = $2
"""

SELECT_USER_TOKEN_LIST: str = """
    SELECT token_name, token_type, created_at
    FROM user_tokens
    WHERE user_id = $1
    ORDER BY created_at
"""
