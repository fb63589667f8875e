# app/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
