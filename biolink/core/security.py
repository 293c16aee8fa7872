"""Admin authentication: credential checks and JWT handling."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from biolink.core.config import Settings

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 12  # 12 hours


def verify_admin_credentials(settings: Settings, username: str, password: str) -> bool:
    """Check credentials against the configured admin account."""
    user_ok = secrets.compare_digest(username.encode(), settings.admin_user.encode())
    pass_ok = secrets.compare_digest(password.encode(), settings.admin_pass.encode())
    return user_ok and pass_ok


def create_access_token(
    settings: Settings,
    username: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed JWT for the admin session."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {
        "sub": username,
        "role": "admin",
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(settings: Settings, token: str) -> str | None:
    """Decode and validate an admin JWT.

    Returns:
        The admin username if the token is valid, None if invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if payload.get("role") != "admin":
        return None
    return payload.get("sub")


def create_cookie_token(settings: Settings, username: str) -> tuple[str, int]:
    """Create a token suitable for httpOnly cookie storage.

    Returns:
        Tuple of (token, max_age_seconds)
    """
    token = create_access_token(settings, username)
    return token, ACCESS_TOKEN_EXPIRE_MINUTES * 60
