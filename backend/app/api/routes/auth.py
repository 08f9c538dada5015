import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_session_payload, require_admin
from app.core.config import settings
from app.core.security import create_csrf_token, create_session_token, get_password_hash, verify_password
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import AdminLogin, AdminOut, PasswordChange

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/admin/login", response_model=AdminOut)
def login(payload: AdminLogin, response: Response, db: Session = Depends(get_db)):
    """Admin login. Sets an httponly session cookie signed by the server.

    401 for unknown user or wrong password, 403 for blocked or non-admin accounts.
    """
    username = payload.username.lower().strip()
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have admin privileges")
    token, _sid = create_session_token(user.username)
    response.set_cookie(
        settings.session_cookie_name,
        token,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=settings.session_expire_minutes * 60,
    )
    logger.info("Admin '%s' logged in", user.username)
    return {"id": user.id, "username": user.username, "is_admin": user.is_admin}

@router.post("/admin/logout")
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name)
    return {"status": "ok"}

@router.get("/admin/me", response_model=AdminOut)
def me(admin: User = Depends(require_admin)):
    return {"id": admin.id, "username": admin.username, "is_admin": admin.is_admin}

@router.get("/csrf-token")
def csrf_token(payload: dict = Depends(get_session_payload)):
    """CSRF token bound to the current admin session; send it back in the CSRF header."""
    return {"csrf_token": create_csrf_token(payload["sid"]), "header": settings.csrf_header_name}

@router.post("/admin/password")
def change_password(body: PasswordChange, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    if not verify_password(body.current_password, admin.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    admin.hashed_password = get_password_hash(body.new_password)
    db.commit()
    return {"status": "ok"}
