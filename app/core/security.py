from __future__ import annotations

from functools import lru_cache
from typing import Optional

from passlib.context import CryptContext

from app.core.settings import settings


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when no user row exists so both branches cost one bcrypt round.
    return pwd_context.hash("dummy-password-for-timing")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def constant_time_verify(user_password_hash: Optional[str], password: str) -> bool:
    if user_password_hash:
        return verify_password(password, user_password_hash)
    verify_password(password, _dummy_hash())
    return False
