# app/models/chat_message.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.utils.clock import utcnow

SENDERS = ("user", "bot", "admin")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    sender = Column(String(16), nullable=False)  # "user" | "bot" | "admin"
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    attachments = Column(JSON, nullable=False, default=list)
    intent = Column(String(255), nullable=True)
    meta = Column(JSON, nullable=False, default=dict)  # quick replies etc.
    created_at = Column(DateTime, default=utcnow, nullable=False)

    session = relationship("ChatSession", back_populates="messages")

    __table_args__ = (
        Index("ix_chat_messages_session_created", "session_id", "created_at"),
    )
