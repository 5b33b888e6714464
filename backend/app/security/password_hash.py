############################################################
#
# requestbooth - Live Event Song Request Service
#
# password_hash.py: Argon2 password hashing utilities
#
############################################################

"""Password hashing utilities for DJ accounts."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

# Argon2id; the salt is generated per hash and embedded in the encoded string
_hasher = PasswordHasher(
    time_cost=3,
    memory_cost=65536,  # 64 MB
    parallelism=4,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: The plaintext password

    Returns:
        Argon2id hash string (includes salt and parameters)
    """
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a stored hash.

    Args:
        password: The plaintext password to verify
        password_hash: The stored Argon2id hash

    Returns:
        True if the password matches
    """
    try:
        return _hasher.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(password_hash: str) -> bool:
    """Check if a stored hash was produced with outdated parameters."""
    return _hasher.check_needs_rehash(password_hash)
