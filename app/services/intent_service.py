# app/services/intent_service.py
import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.core.config import settings
from app.schemas.intent import BotIntentCreate, BotIntentUpdate
from app.services.intent_matcher import IntentMatch, match_intent
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class IntentService:
    def __init__(self, db: Session):
        self.db = db

    def list_intents(self, active_only: bool = False) -> List[models.BotIntent]:
        q = self.db.query(models.BotIntent)
        if active_only:
            q = q.filter(models.BotIntent.is_active == True)
        return q.order_by(models.BotIntent.priority.desc(), models.BotIntent.id.asc()).all()

    def get_intent(self, intent_id: int) -> models.BotIntent:
        intent = self.db.query(models.BotIntent).filter(models.BotIntent.id == intent_id).first()
        if not intent:
            raise HTTPException(status_code=404, detail="Intent not found")
        return intent

    def create_intent(self, payload: BotIntentCreate) -> models.BotIntent:
        intent = models.BotIntent(**payload.model_dump())
        self.db.add(intent)
        self._commit_unique(payload.intent)
        self.db.refresh(intent)
        return intent

    def update_intent(self, intent_id: int, payload: BotIntentUpdate) -> models.BotIntent:
        intent = self.get_intent(intent_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(intent, field, value)
        self._commit_unique(intent.intent)
        self.db.refresh(intent)
        return intent

    def delete_intent(self, intent_id: int):
        intent = self.get_intent(intent_id)
        self.db.delete(intent)
        self.db.commit()

    def _commit_unique(self, label: str):
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=409, detail=f"Intent '{label}' already exists")

    def match(self, text: str, policy: Optional[str] = None) -> Optional[IntentMatch]:
        """Evaluate a message against the current active intents (no side effects)."""
        return match_intent(
            text,
            self.list_intents(active_only=True),
            policy=policy or settings.INTENT_MATCH_POLICY,
            threshold=settings.INTENT_MATCH_THRESHOLD,
        )

    def record_match(self, intent_id: int):
        updated = (
            self.db.query(models.BotIntent)
            .filter(models.BotIntent.id == intent_id)
            .update(
                {
                    models.BotIntent.match_count: models.BotIntent.match_count + 1,
                    models.BotIntent.last_matched: utcnow(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated
