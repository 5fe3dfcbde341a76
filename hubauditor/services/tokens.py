"""
Saved CRM Token Repository

Stores third-party access tokens per user, encrypted with Fernet before they
reach the database. Token values are only decrypted on explicit lookup.
"""

import logging
from typing import List, Optional

from asyncpg import Connection

from hubauditor.core.security import decrypt_token, encrypt_token
from hubauditor.models.enums import TokenType
from hubauditor.models.schemas import TokenInfo
from hubauditor.sql import (
    DELETE_USER_TOKEN,
    SELECT_ENCRYPTED_TOKEN,
    SELECT_USER_TOKEN_LIST,
    UPSERT_USER_TOKEN,
)


logger = logging.getLogger(__name__)


async def save_user_token(
    conn: Connection,
    user_id: int,
    token_name: str,
    token: str,
    encryption_key: str,
    token_type: TokenType = TokenType.HUBSPOT,
) -> None:
    """Insert or replace a named token for the user."""
    encrypted = encrypt_token(token, encryption_key)
    await conn.execute(UPSERT_USER_TOKEN, user_id, token_name, encrypted, TokenType(token_type).value)
    logger.info(f"Saved token '{token_name}' for user {user_id}")


async def get_user_token(
    conn: Connection,
    user_id: int,
    token_name: str,
    encryption_key: str,
) -> Optional[str]:
    """
    Decrypt and return a saved token, or None if no such token exists.

    Raises:
        TokenEncryptionError: If the stored value cannot be decrypted.
    """
    encrypted = await conn.fetchval(SELECT_ENCRYPTED_TOKEN, user_id, token_name)
    if encrypted is None:
        return None
    return decrypt_token(encrypted, encryption_key)


async def delete_user_token(conn: Connection, user_id: int, token_name: str) -> bool:
    """Delete a saved token; True if a row was removed."""
    status = await conn.execute(DELETE_USER_TOKEN, user_id, token_name)
    # asyncpg returns the command tag, e.g. "DELETE 1"
    return status.split()[-1] != "0"


async def list_user_tokens(conn: Connection, user_id: int) -> List[TokenInfo]:
    rows = await conn.fetch(SELECT_USER_TOKEN_LIST, user_id)
    return [
        TokenInfo(
            tokenName=row["token_name"],
            tokenType=TokenType(row["token_type"]),
            createdAt=row["created_at"],
        )
        for row in rows
    ]
