# app/core/dependencies.py
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app import models
from app.core.security import decode_access_token
from app.db.session import SessionLocal

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def user_from_token(db: Session, token: Optional[str]) -> Optional[models.AdminUser]:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or not str(payload.get("sub", "")).isdigit():
        return None
    user = db.query(models.AdminUser).filter(models.AdminUser.id == int(payload["sub"])).first()
    if not user or not user.is_active:
        return None
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.AdminUser:
    user = user_from_token(db, credentials.credentials if credentials else None)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(user: models.AdminUser = Depends(get_current_user)) -> models.AdminUser:
    if user.role not in models.admin_user.ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return user


def get_chat_gateway(request: Request):
    return request.app.state.chat_gateway
