# app/api/v1/intents.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import get_db, require_admin
from app.schemas.intent import (
    BotIntentCreate,
    BotIntentOut,
    BotIntentUpdate,
    IntentMatchRequest,
    IntentMatchResponse,
)
from app.services.intent_service import IntentService

router = APIRouter(tags=["Bot intents"])


@router.get("", response_model=List[BotIntentOut])
def list_intents(
    active_only: bool = Query(False, alias="activeOnly"),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    return IntentService(db).list_intents(active_only=active_only)


@router.post("", response_model=BotIntentOut, status_code=201)
def create_intent(payload: BotIntentCreate, db: Session = Depends(get_db), _=Depends(require_admin)):
    return IntentService(db).create_intent(payload)


@router.post("/match", response_model=IntentMatchResponse)
def match_intent(payload: IntentMatchRequest, db: Session = Depends(get_db), _=Depends(require_admin)):
    """
    Dry run: which intent would answer this message. Match stats are not touched.
    """
    result = IntentService(db).match(payload.message, policy=payload.policy)
    if result is None:
        return {"matched": False, "response": settings.FALLBACK_REPLY}
    intent = result.intent
    return {
        "matched": True,
        "intent": intent.intent,
        "intent_id": intent.id,
        "score": result.score,
        "response": intent.response,
        "quick_replies": intent.quick_replies or [],
    }


@router.get("/{intent_id}", response_model=BotIntentOut)
def get_intent(intent_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    return IntentService(db).get_intent(intent_id)


@router.patch("/{intent_id}", response_model=BotIntentOut)
def update_intent(
    intent_id: int,
    payload: BotIntentUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    return IntentService(db).update_intent(intent_id, payload)


@router.delete("/{intent_id}", status_code=204)
def delete_intent(intent_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    IntentService(db).delete_intent(intent_id)
