"""Password hashing and signed session tokens."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

SESSION_TOKEN_ALGORITHM = "HS256"

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128
EMAIL_MAX_LEN = 100


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def generate_session_secret() -> str:
    return secrets.token_hex(32)


def create_session_token(claims: dict[str, Any], secret: str, max_age: timedelta) -> str:
    """Sign session claims with iat/exp so the cookie expires even if the browser keeps it."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {**claims, "iat": now, "exp": now + max_age}
    return jwt.encode(payload, secret, algorithm=SESSION_TOKEN_ALGORITHM)


def decode_session_token(token: str, secret: str) -> dict[str, Any]:
    """
    Decode and validate a session token; return its claims.
    Raises jwt.PyJWTError on invalid, tampered or expired token.
    """
    return jwt.decode(token, secret, algorithms=[SESSION_TOKEN_ALGORITHM])
