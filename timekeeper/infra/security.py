"""
Password hashing.

bcrypt is slow on purpose; callers on the event loop run these functions in
a worker thread.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only reads this many bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """True if ``password`` matches ``password_hash``"""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False
