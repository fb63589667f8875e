# app/models/admin_user.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from app.db.base import Base
from app.utils.clock import utcnow

ROLES = ("superadmin", "admin", "user")
ADMIN_ROLES = ("superadmin", "admin")


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="admin")
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
