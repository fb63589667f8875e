# app/services/auth_service.py
import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.core.security import create_access_token, hash_password, verify_password
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str):
        return (
            self.db.query(models.AdminUser)
            .filter(models.AdminUser.email == email.strip().lower())
            .first()
        )

    def get_user(self, user_id: int):
        return self.db.query(models.AdminUser).filter(models.AdminUser.id == user_id).first()

    def list_users(self):
        return self.db.query(models.AdminUser).order_by(models.AdminUser.created_at.asc()).all()

    def create_user(self, name: str, email: str, password: str, role: str = "admin"):
        if role not in models.admin_user.ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role: {role}")
        user = models.AdminUser(
            name=name,
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Email already registered")
        self.db.refresh(user)
        return user

    def set_password(self, user, password: str):
        user.password_hash = hash_password(password)
        self.db.commit()
        return user

    def authenticate(self, email: str, password: str):
        user = self.get_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning("Failed admin login for %s", email)
            raise HTTPException(status_code=401, detail="Invalid email or password")

        user.last_login_at = utcnow()
        self.db.commit()
        self.db.refresh(user)
        token = create_access_token(subject=user.id, role=user.role)
        return token, user
