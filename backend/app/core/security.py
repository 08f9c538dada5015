from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import secrets
import jwt
from passlib.context import CryptContext

from app.core.config import settings

# Prefer argon2, keep bcrypt as fallback for compatibility
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")

SESSION_TOKEN_TYPE = "session"
CSRF_TOKEN_TYPE = "csrf"

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_session_token(username: str, expires_delta: Optional[timedelta] = None) -> tuple[str, str]:
    """Issue a signed admin session token.

    Returns (token, session_id). The session id is random per login and is
    what CSRF tokens are bound to.
    """
    expire = datetime.now(tz=timezone.utc) + (expires_delta or timedelta(minutes=settings.session_expire_minutes))
    sid = secrets.token_urlsafe(16)
    to_encode: dict[str, Any] = {"sub": username, "exp": expire, "sid": sid, "typ": SESSION_TOKEN_TYPE}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm), sid


def create_csrf_token(session_id: str) -> str:
    expire = datetime.now(tz=timezone.utc) + timedelta(minutes=settings.session_expire_minutes)
    to_encode = {"sid": session_id, "exp": expire, "typ": CSRF_TOKEN_TYPE, "n": secrets.token_hex(8)}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Decode and verify a token of the given type.
    Raises jwt.PyJWTError if invalid or of another type.
    """
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    if payload.get("typ") != expected_type:
        raise jwt.InvalidTokenError("unexpected token type")
    return payload
