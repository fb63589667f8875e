# app/models/quick_action.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from app.db.base import Base
from app.utils.clock import utcnow

ACTION_TYPES = ("message", "flow", "navigate", "external", "input", "handoff")
SHOW_WHEN = ("always", "business_hours", "after_hours")


class QuickAction(Base):
    __tablename__ = "quick_actions"

    id = Column(Integer, primary_key=True, index=True)
    icon = Column(String(32), nullable=False, default="💬")
    title = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=False, default="")
    order = Column(Integer, nullable=False, default=0, index=True)
    type = Column(String(16), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    config = Column(JSON, nullable=False, default=dict)
    show_when = Column(String(16), nullable=False, default="always")
    click_count = Column(Integer, nullable=False, default=0)
    last_used = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
