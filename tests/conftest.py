# tests/conftest.py
import asyncio
import os

# settings are read at import time
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOT_REPLY_DELAY_SECONDS"] = "0"
os.environ["INTENT_MATCH_POLICY"] = "overlap"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import models
from app.core.dependencies import get_db
from app.core.rate_limit import limiter
from app.core.security import create_access_token, hash_password
from app.db.base import Base
from app.main import app as fastapi_app
from app.services.chat_gateway import ChatGateway
from app.services.connection_hub import Connection, ConnectionHub


@pytest.fixture
def engine(tmp_path):
    # a file, not :memory:, since handlers use the database from worker threads
    engine = create_engine(
        f"sqlite:///{tmp_path / 'chat.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def gateway(session_factory):
    return ChatGateway(session_factory, ConnectionHub(), bot_delay=0, match_policy="overlap", match_threshold=0.3)


@pytest.fixture
def client(engine, session_factory, gateway):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous = fastapi_app.state.chat_gateway, fastapi_app.state.db_engine
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.state.chat_gateway = gateway
    fastapi_app.state.db_engine = engine
    limiter.reset()
    # one portal: every socket and request shares an event loop
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.chat_gateway, fastapi_app.state.db_engine = previous


@pytest.fixture
def admin_user(session_factory):
    with session_factory() as session:
        user = models.AdminUser(
            name="Super Admin",
            email="admin@bookmyseva.com",
            password_hash=hash_password("Admin@123"),
            role="superadmin",
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
    return user


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(subject=admin_user.id, role=admin_user.role)


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


DEMO_INTENTS = [
    {
        "intent": "Greeting",
        "keywords": ["hi", "hello", "hey"],
        "response": "Namaste! Welcome to BookMySeva.",
        "quick_replies": ["Book Seva", "View Services"],
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
        "intent": "Pricing",
        "keywords": ["cost", "price", "rates", "charges", "fee"],
        "response": "The cost depends on the specific Seva and location.",
        "quick_replies": ["Check Prices"],
        "priority": 6,
    },
]


@pytest.fixture
def intents(session_factory):
    with session_factory() as session:
        session.add_all(models.BotIntent(**data) for data in DEMO_INTENTS)
        session.commit()
    return DEMO_INTENTS


class FakeWebSocket:
    """Collects outbound frames; stands in for a Starlette WebSocket in gateway tests."""

    client = None
    headers = {}

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self, name=None):
        return [f for f in self.sent if name is None or f["event"] == name]


def make_connection(is_admin=False, fail=False):
    return Connection(
        FakeWebSocket(fail=fail),
        is_admin=is_admin,
        ip_address="10.0.0.1",
        user_agent="pytest-agent",
    )


def run(coro):
    return asyncio.run(coro)
