# app/db/init_db.py
from app.db.session import engine
from app.db.base import Base
import logging

logger = logging.getLogger(__name__)


def init_db(bind=None):
    # Create all tables if not exist
    from app import models  # import to ensure modules define models
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured (%s)", ", ".join(sorted(Base.metadata.tables)))
