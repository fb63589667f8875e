# app/core/security.py
from datetime import timedelta
from typing import Optional

import jwt
from werkzeug.security import generate_password_hash, check_password_hash

from app.core.config import settings
from app.utils.clock import utcnow


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def create_access_token(subject: str, role: str, expires_minutes: Optional[int] = None) -> str:
    """
    Generate a signed admin token (default lifetime from JWT_EXPIRES_MINUTES)
    """
    minutes = expires_minutes or settings.JWT_EXPIRES_MINUTES
    now = utcnow()
    payload = {
        "sub": str(subject),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and validate a token, returning the payload or None
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
