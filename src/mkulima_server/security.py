"""Password hashing (bcrypt) and bearer tokens (PyJWT, HS256)."""

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt; the salt is embedded in the result."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(
    subject: str,
    role: str,
    secret: str,
    *,
    expires_days: int = 7,
    now: datetime | None = None,
) -> str:
    """Sign a token carrying ``{sub, role}`` that expires after ``expires_days``."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "role": role,
        "iat": issued,
        "exp": issued + timedelta(days=expires_days),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str) -> dict[str, Any]:
    """Verify signature and expiry.

    Raises:
        jwt.PyJWTError: if the token is malformed, tampered with or expired.
    """
    return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["sub", "exp"]})
