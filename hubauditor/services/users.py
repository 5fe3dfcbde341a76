"""
User Account Repository

Data access for the users table: signup, credential checks, profile and
password changes, and the admin listing/statistics. Every function takes an
asyncpg connection (injected through DBSessionDep) as its first argument.

Emails are stored lowercased and stripped so lookups are case-insensitive.
bcrypt work runs in a worker thread so it does not block the event loop.
"""

import asyncio
import logging
from typing import List, Optional

import asyncpg
from asyncpg import Connection

from hubauditor.core.security import hash_password, verify_password
from hubauditor.models.schemas import UserResponse, UserStats
from hubauditor.sql import (
    INSERT_USER,
    SELECT_ALL_USERS,
    SELECT_PASSWORD_HASH_BY_ID,
    SELECT_USER_BY_EMAIL,
    SELECT_USER_BY_ID,
    SELECT_USER_CREDENTIALS_BY_EMAIL,
    SELECT_USER_STATS,
    UPDATE_PASSWORD_HASH,
    UPDATE_USER_PROFILE,
)


logger = logging.getLogger(__name__)


class EmailAlreadyRegisteredError(Exception):
    """Raised when an email is already used by another account."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


# =============================================================================
# Signup and Login
# =============================================================================

async def create_user(
    conn: Connection,
    email: str,
    password: str,
    name: Optional[str] = None,
    bcrypt_rounds: int = 10,
) -> UserResponse:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        EmailAlreadyRegisteredError: If the email is taken.
    """
    password_hash = await asyncio.to_thread(hash_password, password, bcrypt_rounds)
    try:
        row = await conn.fetchrow(INSERT_USER, normalize_email(email), password_hash, name or None)
    except asyncpg.UniqueViolationError as e:
        raise EmailAlreadyRegisteredError(email) from e

    logger.info(f"Created user {row['id']}")
    return UserResponse.from_record(row)


async def verify_user(conn: Connection, email: str, password: str) -> Optional[UserResponse]:
    """Return the user when the credentials match, otherwise None."""
    row = await conn.fetchrow(SELECT_USER_CREDENTIALS_BY_EMAIL, normalize_email(email))
    if row is None:
        return None

    valid = await asyncio.to_thread(verify_password, password, row["password_hash"])
    if not valid:
        return None
    return UserResponse.from_record(row)


# =============================================================================
# Lookups
# =============================================================================

async def get_user_by_id(conn: Connection, user_id: int) -> Optional[UserResponse]:
    row = await conn.fetchrow(SELECT_USER_BY_ID, user_id)
    return UserResponse.from_record(row) if row else None


async def get_user_by_email(conn: Connection, email: str) -> Optional[UserResponse]:
    row = await conn.fetchrow(SELECT_USER_BY_EMAIL, normalize_email(email))
    return UserResponse.from_record(row) if row else None


# =============================================================================
# Profile Management
# =============================================================================

async def update_user_profile(
    conn: Connection,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[UserResponse]:
    """
    Update name and/or email; fields left as None keep their current value.

    Returns:
        The updated user, or None if the user does not exist.

    Raises:
        EmailAlreadyRegisteredError: If the new email belongs to another user.
    """
    new_email = normalize_email(email) if email else None
    try:
        row = await conn.fetchrow(UPDATE_USER_PROFILE, user_id, name, new_email)
    except asyncpg.UniqueViolationError as e:
        raise EmailAlreadyRegisteredError(email) from e
    return UserResponse.from_record(row) if row else None


async def change_password(
    conn: Connection,
    user_id: int,
    current_password: str,
    new_password: str,
    bcrypt_rounds: int = 10,
) -> bool:
    """
    Replace the password after checking the current one.

    Returns:
        True when the password was changed; False when the user does not
        exist or the current password is wrong.
    """
    current_hash = await conn.fetchval(SELECT_PASSWORD_HASH_BY_ID, user_id)
    if current_hash is None:
        return False

    valid = await asyncio.to_thread(verify_password, current_password, current_hash)
    if not valid:
        return False

    new_hash = await asyncio.to_thread(hash_password, new_password, bcrypt_rounds)
    await conn.execute(UPDATE_PASSWORD_HASH, user_id, new_hash)
    logger.info(f"Password changed for user {user_id}")
    return True


# =============================================================================
# Admin
# =============================================================================

async def list_users(conn: Connection) -> List[UserResponse]:
    rows = await conn.fetch(SELECT_ALL_USERS)
    return [UserResponse.from_record(row) for row in rows]


async def get_user_stats(conn: Connection) -> UserStats:
    row = await conn.fetchrow(SELECT_USER_STATS)
    if row is None:
        return UserStats()
    return UserStats(
        totalUsers=row["total_users"] or 0,
        adminUsers=row["admin_users"] or 0,
        newUsers7d=row["new_users_7d"] or 0,
        totalTokens=row["total_tokens"] or 0,
        totalAudits=row["total_audits"] or 0,
    )
