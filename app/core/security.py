"""
Password hashing and verification (bcrypt).

Rules:
- Only hashes are stored; plaintext passwords are never persisted or logged
- Verification runs in constant time relative to the stored hash, including
  when there is no stored hash
"""
from __future__ import annotations
from typing import Optional

import bcrypt

from core.config import settings

# Compared against when the account has no hash so timing does not reveal it.
_DUMMY_HASH = bcrypt.hashpw(b"rotaclock-dummy-password", bcrypt.gensalt(rounds=4))


def _to_bytes(value) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return str(value).encode()


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(_to_bytes(plain), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode()


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """
    Check a plaintext password against a stored bcrypt hash.

    Returns:
        False for a missing or malformed hash instead of raising
    """
    if not hashed:
        bcrypt.checkpw(_to_bytes(plain), _DUMMY_HASH)
        return False
    try:
        return bcrypt.checkpw(_to_bytes(plain), _to_bytes(hashed))
    except ValueError:
        # Malformed salt / not a bcrypt hash
        return False
