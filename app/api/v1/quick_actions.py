# app/api/v1/quick_actions.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, require_admin
from app.schemas.quick_action import QuickActionCreate, QuickActionOut, QuickActionUpdate
from app.services.quick_action_service import QuickActionService

router = APIRouter(tags=["Quick actions"])


@router.get("", response_model=List[QuickActionOut])
def list_active_actions(db: Session = Depends(get_db)):
    """Buttons shown by the chat widget (public)."""
    return QuickActionService(db).list_actions(active_only=True)


@router.get("/all", response_model=List[QuickActionOut])
def list_all_actions(db: Session = Depends(get_db), _=Depends(require_admin)):
    return QuickActionService(db).list_actions(active_only=False)


@router.post("", response_model=QuickActionOut, status_code=201)
def create_action(payload: QuickActionCreate, db: Session = Depends(get_db), _=Depends(require_admin)):
    return QuickActionService(db).create_action(payload)


@router.patch("/{action_id}", response_model=QuickActionOut)
def update_action(
    action_id: int,
    payload: QuickActionUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    return QuickActionService(db).update_action(action_id, payload)


@router.delete("/{action_id}", status_code=204)
def delete_action(action_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    QuickActionService(db).delete_action(action_id)


@router.post("/{action_id}/click", response_model=QuickActionOut)
def record_click(action_id: int, db: Session = Depends(get_db)):
    return QuickActionService(db).record_click(action_id)
