from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Sign a session token whose subject is the user's primary key."""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])


def get_token_user_id(token: str) -> int:
    """Return the user id a token was issued for.

    Raises ``jwt.InvalidTokenError`` when the signature, expiry or subject is
    not acceptable.
    """
    subject = decode_access_token(token).get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Token subject is not a user id") from exc
