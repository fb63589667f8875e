# app/schemas/chat.py
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from app.schemas.base import CamelModel


def _as_str(value):
    if value is None or value == "":
        return None
    return str(value)


# clients send numeric or string ids
OptionalId = Annotated[Optional[str], BeforeValidator(_as_str)]


class GuestDetails(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


# ---------- inbound socket payloads ----------

class JoinSessionPayload(CamelModel):
    user_id: OptionalId = None
    guest_id: OptionalId = None
    guest_details: Optional[GuestDetails] = None


class SendMessagePayload(CamelModel):
    message: str = Field(..., min_length=1, max_length=4000)
    user_id: OptionalId = None
    guest_id: OptionalId = None

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class EndChatPayload(CamelModel):
    guest_id: Annotated[str, BeforeValidator(_as_str)]


class AdminJoinSessionPayload(CamelModel):
    session_id: int


class AdminReplyPayload(CamelModel):
    session_id: int
    message: str = Field(..., min_length=1, max_length=4000)


class DeleteMessagePayload(CamelModel):
    message_id: int
    session_id: int


class DeleteSessionPayload(CamelModel):
    # storage id, or a last-known connection id from older admin consoles
    session_id: Union[int, str]


# ---------- outbound ----------

class ChatMessageOut(CamelModel):
    id: int
    session_id: int
    sender: str
    message: str
    is_read: bool
    is_deleted: bool
    attachments: List[str] = []
    intent: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict, serialization_alias="metadata")
    created_at: datetime


class ChatSessionOut(CamelModel):
    id: int
    user_id: OptionalId = None
    guest_id: OptionalId = None
    guest_details: Dict[str, Any] = {}
    socket_id: Optional[str] = None
    is_active: bool
    last_activity: datetime
    context: Dict[str, Any] = {}
    escalated: bool
    escalated_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    ended_by_user: bool
    expired_at: Optional[datetime] = None
    is_deleted: bool
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class SessionJoinedOut(CamelModel):
    session_id: Optional[int] = None
    messages: List[ChatMessageOut] = []


class SessionActionResponse(CamelModel):
    success: bool
    session_id: int
    message: str


def dump_message(message) -> dict:
    return ChatMessageOut.model_validate(message).model_dump(by_alias=True, mode="json")


def dump_session(session) -> dict:
    return ChatSessionOut.model_validate(session).model_dump(by_alias=True, mode="json")
