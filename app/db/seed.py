# app/db/seed.py
"""
Seed an admin account and the demo chat configuration.

    python -m app.db.seed                # admin + intents + quick actions
    python -m app.db.seed --reset-chat   # also wipe sessions/messages first
"""
import argparse
import logging
import os

from app import models
from app.core.logging import configure_logging
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)

DEMO_INTENTS = [
    {
        "intent": "Greeting",
        "keywords": ["hi", "hello", "hey"],
        "response": "Namaste! Welcome to BookMySeva. How can I assist you in your spiritual journey today?",
        "quick_replies": ["Book Seva", "View Services", "Contact Support"],
        "priority": 10,
    },
    {
        "intent": "Book Seva",
        "keywords": ["book", "booking", "reserve", "schedule", "puja"],
        "response": "I can help you book a Seva. Which temple or deity are you interested in?",
        "quick_replies": ["Tirupati", "Kashi", "Rameshwaram"],
        "priority": 8,
    },
    {
        "intent": "Services Info",
        "keywords": ["services", "offerings", "sevas"],
        "response": "We verify and facilitate various Sevas including Pujas, Homas, and Darshans across major temples in India.",
        "quick_replies": ["Popular Sevas", "Upcoming Events"],
        "priority": 7,
    },
    {
        "intent": "Contact Support",
        "keywords": ["help", "support", "agent"],
        "response": "I will connect you with our support team manually. Please hold on.",
        "quick_replies": [],
        "priority": 9,
    },
    {
        "intent": "Pricing",
        "keywords": ["cost", "price", "fee"],
        "response": "The cost depends on the specific Seva and location. You can view detailed pricing on the service page.",
        "quick_replies": ["Check Prices"],
        "priority": 6,
    },
]

DEMO_QUICK_ACTIONS = [
    {"icon": "🙏", "title": "Book Seva", "subtitle": "Schedule a Puja", "type": "message",
     "order": 1, "config": {"message": "I want to book a Seva"}},
    {"icon": "ℹ️", "title": "Services", "subtitle": "View our offerings", "type": "navigate",
     "order": 2, "config": {"url": "/services"}},
    {"icon": "📞", "title": "Support", "subtitle": "Talk to us", "type": "handoff", "order": 3},
    {"icon": "💬", "title": "Chat", "subtitle": "Message us", "type": "message",
     "order": 4, "config": {"message": "Hi"}},
]


def seed_admin(db, email: str, password: str, name: str = "Super Admin"):
    svc = AuthService(db)
    user = svc.get_by_email(email)
    if user:
        user.role = "superadmin"
        svc.set_password(user, password)
        logger.info("Admin %s already exists, password reset", email)
        return user
    user = svc.create_user(name=name, email=email, password=password, role="superadmin")
    logger.info("Created admin %s", email)
    return user


def seed_chat_config(db, reset_chat: bool = False):
    if reset_chat:
        db.query(models.ChatMessage).delete()
        db.query(models.ChatSession).delete()
    db.query(models.BotIntent).delete()
    db.query(models.QuickAction).delete()
    db.commit()

    db.add_all(models.BotIntent(**data) for data in DEMO_INTENTS)
    db.add_all(models.QuickAction(**data) for data in DEMO_QUICK_ACTIONS)
    db.commit()
    logger.info("Created %d intents and %d quick actions", len(DEMO_INTENTS), len(DEMO_QUICK_ACTIONS))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed BookMySeva chat data")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@bookmyseva.com"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD", "Admin@123"))
    parser.add_argument("--reset-chat", action="store_true", help="delete existing sessions and messages")
    args = parser.parse_args(argv)

    configure_logging("INFO")
    init_db()
    with SessionLocal() as db:
        seed_admin(db, args.email, args.password)
        seed_chat_config(db, reset_chat=args.reset_chat)


if __name__ == "__main__":
    main()
