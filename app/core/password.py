"""Password and token hashing utilities."""

import hashlib
from pwdlib import PasswordHash

# pwdlib is the modern, recommended way (Argon2 by default)
password_hash = PasswordHash.recommended()

# Verified against when no admin matches, so lookups cost the same either way
DUMMY_HASH = password_hash.hash("dummy-password-for-timing")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check whether a plaintext password matches a stored hashed password.

    Returns:
        True if the plaintext password matches the hashed password, False otherwise.
    """
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a plaintext password using the recommended hashing algorithm (Argon2).

    Parameters:
        password (str): Plaintext password to hash.

    Returns:
        str: Password hash suitable for secure storage.
    """
    return password_hash.hash(password)


def get_token_hash(token: str) -> str:
    """
    Hash an access token using SHA-256 for storage on its session row.

    Parameters:
        token (str): The token to hash.

    Returns:
        str: The SHA-256 hex digest of the token.
    """
    return hashlib.sha256(token.encode()).hexdigest()


def verify_token(token: str, hashed_token: str) -> bool:
    """
    Verify a token against its stored hash.

    Returns:
        bool: True if the token matches the hash, False otherwise.
    """
    return get_token_hash(token) == hashed_token
