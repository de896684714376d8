"""
Password hashing helpers (bcrypt, cost factor 10).

bcrypt is CPU-bound (~50-100ms at cost 10), so both helpers run in a worker
thread to keep the event loop free.
"""

import asyncio

import bcrypt

SALT_ROUNDS = 10


def _hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=SALT_ROUNDS)).decode("utf-8")


def _verify(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


async def hash_password(password: str) -> str:
    return await asyncio.to_thread(_hash, password)


async def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return await asyncio.to_thread(_verify, password, password_hash)
