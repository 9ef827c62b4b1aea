"""Password hashing and JWT creation/verification for authentication."""

import base64
import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Max lengths for registration input (after trimming the username).
USERNAME_MAX_LEN = 50
PASSWORD_MAX_LEN = 50

# Audience bound into every member session token.
TOKEN_AUDIENCE_USER = "user"


def _prehash(plain_password: str) -> bytes:
    # SHA-256 then base64: 44 ASCII bytes, under bcrypt's 72-byte limit with no NUL bytes.
    digest = hashlib.sha256(plain_password.encode("utf-8")).digest()
    return base64.b64encode(digest)


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    return bcrypt.hashpw(_prehash(plain_password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    try:
        return bcrypt.checkpw(_prehash(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(sub: str | int, audience: str) -> str:
    """Create a JWT access token binding sub (account id) to an audience."""
    now = datetime.now(UTC)
    expire = now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(sub),
        "aud": audience,
        "exp": expire,
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, audience: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return payload (sub, aud, exp, iat).
    Raises jwt.PyJWTError on invalid, expired or wrong-audience tokens.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
        audience=audience,
    )
