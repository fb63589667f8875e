# app/api/v1/users.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, require_admin
from app.schemas.user import UserOut
from app.services.auth_service import AuthService

router = APIRouter(tags=["Admin users"])


@router.get("", response_model=List[UserOut])
def list_admin_users(db: Session = Depends(get_db), _=Depends(require_admin)):
    """Console accounts, oldest first."""
    return AuthService(db).list_users()
