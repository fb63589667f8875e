# app/models/__init__.py
from app.models import admin_user, bot_intent, chat_message, chat_session, quick_action
from app.models.admin_user import AdminUser
from app.models.bot_intent import BotIntent
from app.models.chat_message import ChatMessage
from app.models.chat_session import ChatSession
from app.models.quick_action import QuickAction

__all__ = ["AdminUser", "BotIntent", "ChatMessage", "ChatSession", "QuickAction"]
