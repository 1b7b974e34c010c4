"""Password hashing."""
import asyncio

import bcrypt

DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> bytes:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt)


def password_matches(password: str, password_hash: bytes) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash)
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password_async(password: str, rounds: int = DEFAULT_ROUNDS) -> bytes:
    """Hash in a worker thread so the event loop keeps running."""
    return await asyncio.to_thread(hash_password, password, rounds)


async def password_matches_async(password: str, password_hash: bytes) -> bool:
    return await asyncio.to_thread(password_matches, password, password_hash)
