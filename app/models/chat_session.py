# app/models/chat_session.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.utils.clock import utcnow


class ChatSession(Base):
    __tablename__ = "chat_sessions"

    id = Column(Integer, primary_key=True, index=True)

    # "user:<id>" | "guest:<id>" | "connection:<id>"; released (NULL) on soft delete
    identity_key = Column(String(255), unique=True, nullable=True)
    user_id = Column(String(255), nullable=True, index=True)
    guest_id = Column(String(255), nullable=True, index=True)
    guest_details = Column(JSON, nullable=False, default=dict)

    # last live connection bound to this session
    socket_id = Column(String(64), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    last_activity = Column(DateTime, default=utcnow, nullable=False, index=True)
    context = Column(JSON, nullable=False, default=dict)

    escalated = Column(Boolean, default=False, nullable=False)
    escalated_at = Column(DateTime, nullable=True)

    ended_at = Column(DateTime, nullable=True)
    ended_by_user = Column(Boolean, default=False, nullable=False)
    expired_at = Column(DateTime, nullable=True)

    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ChatMessage.created_at",
    )

    __table_args__ = (
        Index("ix_chat_sessions_user_active", "user_id", "is_active"),
    )

    @property
    def display_name(self) -> str:
        details = self.guest_details or {}
        return details.get("name") or self.user_id or self.guest_id or f"Session {self.id}"
