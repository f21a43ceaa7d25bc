from datetime import datetime, timedelta, timezone

import jwt

from booking_backend.core import config

OWNER_TOKEN_SCOPE = "calendar:owner"


def create_owner_token(owner_email: str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {
        "sub": owner_email.strip().lower(),
        "scope": OWNER_TOKEN_SCOPE,
        "exp": expire,
        "iat": issued_at,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_owner_token(token: str) -> dict:
    payload = jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    if payload.get("scope") != OWNER_TOKEN_SCOPE:
        raise jwt.InvalidTokenError("Token is not an owner token")
    return payload
