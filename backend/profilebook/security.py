"""
Profilebook Backend — Password Hashing
=======================================

What:  Salted one-way password hashing and verification.
How:   PBKDF2-HMAC-SHA256 with a random 16-byte salt. The derivation is CPU
       bound, so it runs in a worker thread to keep the event loop free.

Stored format:
    pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>

    Values that do not start with the scheme prefix are treated as legacy
    plaintext passwords (rows imported from the legacy database) and are
    compared in constant time.
"""

import asyncio
import hashlib
import secrets

from profilebook.config import settings

SCHEME = "pbkdf2_sha256"


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def is_hashed(stored: str) -> bool:
    return stored.startswith(SCHEME + "$")


async def hash_password(password: str) -> str:
    """Returns the encoded hash for a plaintext password."""
    iterations = settings.password_hash_iterations
    salt = secrets.token_bytes(16)
    digest = await asyncio.to_thread(_derive, password, salt, iterations)
    return f"{SCHEME}${iterations}${salt.hex()}${digest.hex()}"


async def verify_password(password: str, stored: str) -> bool:
    """
    Checks a plaintext password against a stored value.

    Returns False for malformed hashes instead of raising.
    """
    if not is_hashed(stored):
        return secrets.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))

    try:
        _, iterations, salt_hex, hash_hex = stored.split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    if rounds < 1:
        return False

    digest = await asyncio.to_thread(_derive, password, salt, rounds)
    return secrets.compare_digest(digest, expected)
