"""
Password hashing and token helpers
"""
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt

from courtfile.core.config import settings


def get_password_hash(password: str) -> str:
    # bcrypt only reads the first 72 bytes
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a JWT carrying `data` plus an `exp` claim."""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and validate a JWT. Raises jwt.PyJWTError on any failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


def generate_verification_token() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def token_expiry(hours: int) -> datetime:
    return datetime.utcnow() + timedelta(hours=hours)


def hash_security_code(code: str) -> str:
    return hashlib.sha256((code or "").encode("utf-8")).hexdigest()


def verify_security_code(code: str) -> bool:
    """Compare the sha256 of `code` with the configured admin security hash."""
    expected = settings.ADMIN_SECURITY_CODE_HASH
    if not expected or not code:
        return False
    return hmac.compare_digest(hash_security_code(code), expected)
