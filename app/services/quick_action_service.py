# app/services/quick_action_service.py
from sqlalchemy.orm import Session
from fastapi import HTTPException

from app import models
from app.schemas.quick_action import QuickActionCreate, QuickActionUpdate
from app.utils.clock import utcnow


class QuickActionService:
    def __init__(self, db: Session):
        self.db = db

    def list_actions(self, active_only: bool = True):
        q = self.db.query(models.QuickAction)
        if active_only:
            q = q.filter(models.QuickAction.is_active == True)
        return q.order_by(models.QuickAction.order.asc(), models.QuickAction.id.asc()).all()

    def get_action(self, action_id: int):
        action = self.db.query(models.QuickAction).filter(models.QuickAction.id == action_id).first()
        if not action:
            raise HTTPException(status_code=404, detail="Quick action not found")
        return action

    def create_action(self, payload: QuickActionCreate):
        action = models.QuickAction(**payload.model_dump())
        self.db.add(action)
        self.db.commit()
        self.db.refresh(action)
        return action

    def update_action(self, action_id: int, payload: QuickActionUpdate):
        action = self.get_action(action_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(action, field, value)
        self.db.commit()
        self.db.refresh(action)
        return action

    def delete_action(self, action_id: int):
        action = self.get_action(action_id)
        self.db.delete(action)
        self.db.commit()

    def record_click(self, action_id: int):
        action = self.get_action(action_id)
        if not action.is_active:
            raise HTTPException(status_code=404, detail="Quick action not found")
        action.click_count = (action.click_count or 0) + 1
        action.last_used = utcnow()
        self.db.commit()
        self.db.refresh(action)
        return action
