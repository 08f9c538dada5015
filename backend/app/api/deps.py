from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import jwt

from app.core.config import settings
from app.core.security import CSRF_TOKEN_TYPE, SESSION_TOKEN_TYPE, decode_token
from app.db.session import get_db
from app.models.user import User

SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}

def get_session_payload(request: Request) -> dict:
    """Decode the admin session cookie. Only the server-signed cookie counts."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        payload = decode_token(token, SESSION_TOKEN_TYPE)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    if not payload.get("sub") or not payload.get("sid"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    return payload

def get_current_admin(payload: dict = Depends(get_session_payload), db: Session = Depends(get_db)) -> User:
    user = db.query(User).filter(User.username == payload["sub"]).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden - Admin access required")
    return user

def require_admin(request: Request, admin: User = Depends(get_current_admin), payload: dict = Depends(get_session_payload)) -> User:
    """Admin session plus, for mutating requests, a CSRF token bound to that session."""
    if request.method.upper() in SAFE_METHODS:
        return admin
    token = request.headers.get(settings.csrf_header_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing CSRF token")
    try:
        csrf = decode_token(token, CSRF_TOKEN_TYPE)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token")
    if csrf.get("sid") != payload.get("sid"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token")
    return admin
