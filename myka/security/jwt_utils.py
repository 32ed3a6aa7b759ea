from datetime import datetime, timedelta, timezone

import jwt

from myka.config import JWT_ALG, JWT_SECRET
from myka.errors import AuthError


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Raises AuthError if it is invalid."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except jwt.PyJWTError:
        raise AuthError("Invalid token")


def get_current_user(authorization_header: str) -> dict:
    """
    Takes the header ``Authorization: Bearer <token>``, validates it and
    returns the payload. Raises AuthError if missing or invalid.
    """
    if not authorization_header:
        raise AuthError("Missing Authorization header")

    if not authorization_header.startswith("Bearer "):
        raise AuthError("Invalid Authorization header format")

    payload = decode_token(authorization_header.removeprefix("Bearer ").strip())

    if not payload.get("sub"):
        raise AuthError("Token without subject")

    return payload


def create_token(user_id: str, expires_in: timedelta = timedelta(days=7)) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)
