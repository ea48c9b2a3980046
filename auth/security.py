"""
Security utilities: password hashing and session keys.
"""
from typing import Tuple
from passlib.context import CryptContext
import bcrypt
import secrets
import hashlib

import config


# Only used to verify hashes bcrypt.checkpw rejects (e.g. legacy $2a$ variants)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    try:
        password_bytes = plain_password.encode('utf-8')
        hash_bytes = hashed_password.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError:
        # Not a bcrypt hash bcrypt itself understands; let passlib decide
        return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Raises:
        ValueError: If the password is longer than bcrypt's 72-byte limit
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        raise ValueError("Password cannot be longer than 72 bytes. Please use a shorter password.")

    return bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode('utf-8')


# Session utilities
def generate_session_key() -> Tuple[str, str]:
    """
    Generate a new session key.

    Returns:
        Tuple of (session_key, session_hash); only the hash is stored
    """
    session_key = secrets.token_urlsafe(32)
    return session_key, hash_session_key(session_key)


def hash_session_key(key: str) -> str:
    """
    Hash a session key for storage/comparison.

    Args:
        key: Session key string

    Returns:
        Hashed key
    """
    return hashlib.sha256(key.encode()).hexdigest()
