# app/models/bot_intent.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON
from app.db.base import Base
from app.utils.clock import utcnow


class BotIntent(Base):
    __tablename__ = "bot_intents"

    id = Column(Integer, primary_key=True, index=True)
    intent = Column(String(255), unique=True, nullable=False)
    keywords = Column(JSON, nullable=False, default=list)
    response = Column(Text, nullable=False)
    quick_replies = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    priority = Column(Integer, default=0, nullable=False)  # higher is checked first
    match_count = Column(Integer, default=0, nullable=False)
    last_matched = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
