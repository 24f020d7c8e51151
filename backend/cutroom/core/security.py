"""
Security utilities for Cutroom.

Provides password hashing with bcrypt and JWT handling for session access
tokens, emailed confirmation/reset tokens and signed storage URLs.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import get_settings

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"

# Purposes for emailed tokens
PURPOSE_CONFIRM = "confirm"
PURPOSE_RESET = "reset"
PURPOSE_STORAGE = "storage"


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify a password against its hash.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain, hashed)


def _encode(claims: dict, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode["iat"] = now
    to_encode["exp"] = now + expires_delta
    return jwt.encode(to_encode, get_settings().secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload

    Raises:
        JWTError: If token is invalid or expired
    """
    return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])


def create_access_token(
    user_id: str,
    session_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token bound to a stored session.

    Args:
        user_id: Identity ID to encode in the token
        session_id: Session row the token belongs to
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=get_settings().access_token_expire_hours)
    return _encode({"sub": user_id, "sid": session_id}, expires_delta)


def password_fingerprint(password_hash: str) -> str:
    """Short digest of a stored password hash; changes whenever the password does."""
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


def create_email_token(user_id: str, purpose: str, password_hash: Optional[str] = None) -> str:
    """
    Token emailed to a user to confirm the address or reset the password.

    Reset tokens carry a fingerprint of the password hash they were issued
    against, so they stop working once the password has been changed.
    """
    claims = {"sub": user_id, "purpose": purpose}
    if password_hash is not None:
        claims["pwd"] = password_fingerprint(password_hash)
    expires_delta = timedelta(hours=get_settings().email_token_expire_hours)
    return _encode(claims, expires_delta)


def read_email_claims(token: str, purpose: str) -> Optional[dict]:
    """
    Return the payload of an emailed token.

    Returns None when the token is invalid, expired, or was issued for a
    different purpose.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    if payload.get("purpose") != purpose:
        return None
    return payload


def read_email_token(token: str, purpose: str) -> Optional[str]:
    """Return the user ID carried by an emailed token, or None."""
    payload = read_email_claims(token, purpose)
    return payload.get("sub") if payload else None


def reset_token_matches(payload: dict, password_hash: str) -> bool:
    """True if a reset token was issued against the current password."""
    return payload.get("pwd") == password_fingerprint(password_hash)

def create_storage_token(bucket: str, path: str, ttl_seconds: int) -> str:
    """Token granting read access to a single stored object."""
    return _encode(
        {"purpose": PURPOSE_STORAGE, "bucket": bucket, "path": path},
        timedelta(seconds=ttl_seconds),
    )


def verify_storage_token(token: str, bucket: str, path: str) -> bool:
    """Check a signed URL token against the requested object."""
    try:
        payload = decode_token(token)
    except JWTError:
        return False
    return (
        payload.get("purpose") == PURPOSE_STORAGE
        and payload.get("bucket") == bucket
        and payload.get("path") == path
    )
