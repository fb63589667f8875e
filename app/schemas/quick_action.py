# app/schemas/quick_action.py
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from app.schemas.base import CamelModel

ActionType = Literal["message", "flow", "navigate", "external", "input", "handoff"]
ShowWhen = Literal["always", "business_hours", "after_hours"]


class QuickActionCreate(CamelModel):
    icon: str = "💬"
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: str = ""
    order: int = 0
    type: ActionType
    is_active: bool = True
    config: Dict[str, Any] = {}
    show_when: ShowWhen = "always"


class QuickActionUpdate(CamelModel):
    icon: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    order: Optional[int] = None
    type: Optional[ActionType] = None
    is_active: Optional[bool] = None
    config: Optional[Dict[str, Any]] = None
    show_when: Optional[ShowWhen] = None


class QuickActionOut(CamelModel):
    id: int
    icon: str
    title: str
    subtitle: str
    order: int
    type: str
    is_active: bool
    config: Dict[str, Any] = {}
    show_when: str
    click_count: int
    last_used: Optional[datetime] = None
