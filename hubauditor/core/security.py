"""
Password hashing, session tokens and token encryption for HubAuditor.

Three independent primitives live here:

- Password hashing with bcrypt. Hashes are stored as UTF-8 strings.
- Session tokens: HS256 JWTs carrying ``userId`` and ``email`` with an
  expiry, delivered to the browser as an http-only cookie.
- Encryption at rest for saved CRM access tokens using Fernet
  (AES-128-CBC + HMAC). The Fernet key is derived from ENCRYPTION_KEY with
  SHA-256 so operators can configure any secret string.

Usage:
    from hubauditor.core.security import hash_password, create_access_token

    password_hash = hash_password("s3cret-pass", rounds=settings.bcrypt_rounds)
    token = create_access_token(user_id=1, email="a@b.com", settings=settings)
    payload = verify_access_token(token, settings)  # None when invalid/expired
"""

import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel

from hubauditor.core.config import Settings


logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES: int = 72


class TokenEncryptionError(Exception):
    """Raised when a CRM token cannot be encrypted or decrypted."""


class SessionPayload(BaseModel):
    """Decoded contents of a valid session token."""
    userId: int
    email: str


# =============================================================================
# Password Hashing
# =============================================================================

def _password_bytes(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """
    Hash a password with bcrypt.

    Args:
        password: Plain-text password.
        rounds: bcrypt cost factor.

    Returns:
        The bcrypt hash as a string suitable for the password_hash column.
    """
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Check a plain-text password against a stored bcrypt hash.

    Malformed hashes are treated as a mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode('utf-8'))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# =============================================================================
# Session Tokens (JWT)
# =============================================================================

def create_access_token(
    user_id: int,
    email: str,
    settings: Settings,
    now: Optional[datetime] = None,
) -> str:
    """
    Issue a signed session token for a user.

    Args:
        user_id: Primary key of the user.
        email: User email, embedded for convenience.
        settings: Settings carrying jwt_secret, jwt_algorithm and jwt_expiry_days.
        now: Issue time; defaults to the current UTC time.

    Returns:
        Encoded JWT string.
    """
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        'userId': user_id,
        'email': email,
        'iat': issued_at,
        'exp': issued_at + timedelta(days=settings.jwt_expiry_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str, settings: Settings) -> Optional[SessionPayload]:
    """
    Verify and decode a session token.

    Returns:
        SessionPayload for a valid, unexpired token; None otherwise.
    """
    try:
        decoded = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    if 'userId' not in decoded or 'email' not in decoded:
        logger.info("Rejected session token: missing claims")
        return None

    return SessionPayload(userId=decoded['userId'], email=decoded['email'])


# =============================================================================
# Token Encryption (Fernet)
# =============================================================================

def _fernet(encryption_key: str) -> Fernet:
    digest = hashlib.sha256(encryption_key.encode('utf-8')).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_token(token: str, encryption_key: str) -> str:
    """
    Encrypt a CRM access token for storage.

    Raises:
        TokenEncryptionError: If the token is empty.
    """
    if not token:
        raise TokenEncryptionError("Failed to encrypt token: token is empty")
    return _fernet(encryption_key).encrypt(token.encode('utf-8')).decode('utf-8')


def decrypt_token(encrypted_token: str, encryption_key: str) -> str:
    """
    Decrypt a stored CRM access token.

    Raises:
        TokenEncryptionError: If the ciphertext was tampered with, was
            produced with another key, or decrypts to an empty string.
    """
    try:
        token = _fernet(encryption_key).decrypt(encrypted_token.encode('utf-8')).decode('utf-8')
    except InvalidToken as e:
        raise TokenEncryptionError("Failed to decrypt token") from e

    if not token:
        raise TokenEncryptionError("Decryption resulted in empty string")
    return token
