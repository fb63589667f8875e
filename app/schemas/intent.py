# app/schemas/intent.py
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, Field

from app.schemas.base import CamelModel


def _clean_keywords(v):
    if v is None:
        return v
    cleaned = [k.strip() for k in v if k and k.strip()]
    if not cleaned:
        raise ValueError("at least one keyword is required")
    return cleaned


Keywords = Annotated[List[str], AfterValidator(_clean_keywords)]


class BotIntentCreate(CamelModel):
    intent: str = Field(..., min_length=1, max_length=255)
    keywords: Keywords
    response: str = Field(..., min_length=1)
    quick_replies: List[str] = []
    is_active: bool = True
    priority: int = 0


class BotIntentUpdate(CamelModel):
    intent: Optional[str] = Field(None, min_length=1, max_length=255)
    keywords: Optional[Keywords] = None
    response: Optional[str] = Field(None, min_length=1)
    quick_replies: Optional[List[str]] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None


class BotIntentOut(CamelModel):
    id: int
    intent: str
    keywords: List[str]
    response: str
    quick_replies: List[str] = []
    is_active: bool
    priority: int
    match_count: int
    last_matched: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class IntentMatchRequest(CamelModel):
    message: str = Field(..., min_length=1)
    policy: Optional[str] = Field(None, pattern="^(overlap|substring)$")


class IntentMatchResponse(CamelModel):
    matched: bool
    intent: Optional[str] = None
    intent_id: Optional[int] = None
    score: float = 0.0
    response: str
    quick_replies: List[str] = []
