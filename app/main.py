# app/main.py
import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from app.api.api_router import api_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.db import init_db
from app.db.session import SessionLocal, engine
from app.services.chat_gateway import ChatGateway
from app.services.connection_hub import ConnectionHub

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="BookMySeva Chat Backend", version="0.1.0")

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.db_engine = engine
app.state.chat_gateway = ChatGateway(SessionLocal, ConnectionHub())

app.include_router(api_router, prefix="/api")


@app.get("/health")
def health():
    gateway = app.state.chat_gateway
    return {"status": "ok", "env": settings.ENV, "connections": len(gateway.hub)}


@app.on_event("startup")
async def on_startup():
    logger.info("Starting up: initializing DB...")
    init_db.init_db(bind=app.state.db_engine)
    app.state.expiry_task = asyncio.create_task(app.state.chat_gateway.run_expiry_sweeper())
    logger.info("Startup complete")


@app.on_event("shutdown")
async def on_shutdown():
    task = getattr(app.state, "expiry_task", None)
    if task:
        task.cancel()
    await app.state.chat_gateway.wait_idle()
    logger.info("Shutdown complete")
