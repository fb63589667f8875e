# app/api/v1/chat.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.dependencies import get_chat_gateway, get_db, require_admin, user_from_token
from app.models.admin_user import ADMIN_ROLES
from app.schemas.chat import ChatMessageOut, ChatSessionOut, SessionActionResponse
from app.services.chat_service import ChatService
from app.services.connection_hub import Connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

WS_POLICY_VIOLATION = 1008


# ---------- real-time ----------

@router.websocket("/ws")
async def chat_socket(websocket: WebSocket):
    gateway = websocket.app.state.chat_gateway
    await websocket.accept()
    await gateway.serve(Connection(websocket))


@router.websocket("/admin/ws")
async def admin_chat_socket(websocket: WebSocket, token: str = Query(None)):
    gateway = websocket.app.state.chat_gateway

    def admin_id_for_token():
        with gateway.session_factory() as db:
            user = user_from_token(db, token)
            return user.id if user and user.role in ADMIN_ROLES else None

    admin_id = await run_in_threadpool(admin_id_for_token)

    if admin_id is None:
        logger.warning("Rejected admin socket without a valid admin token")
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    await gateway.serve(Connection(websocket, is_admin=True, admin_id=admin_id))


# ---------- admin REST ----------

@router.get("/sessions", response_model=List[ChatSessionOut])
def list_sessions(
    status: str = Query("all", pattern="^(active|all)$"),
    limit: int = Query(50, ge=1, le=500),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    service = ChatService(db)
    return service.list_sessions(status=status, limit=limit, include_deleted=include_deleted)


@router.get("/sessions/{session_id}", response_model=ChatSessionOut)
def get_session(session_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    return ChatService(db).get_session_or_404(session_id)


@router.get("/history/{session_id}", response_model=List[ChatMessageOut])
def get_history(
    session_id: int,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    db: Session = Depends(get_db),
    _=Depends(require_admin),
):
    service = ChatService(db)
    service.get_session_or_404(session_id)
    return service.get_history(session_id, include_deleted=include_deleted)


@router.post("/sessions/{session_id}/read")
def mark_session_read(session_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    service = ChatService(db)
    service.get_session_or_404(session_id)
    return {"sessionId": session_id, "updated": service.mark_read(session_id)}


@router.post("/sessions/{session_id}/escalate", response_model=ChatSessionOut)
def escalate_session(session_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    return ChatService(db).escalate_session(session_id)


@router.delete("/sessions/{session_id}", response_model=SessionActionResponse)
async def delete_session(session_id: int, gateway=Depends(get_chat_gateway), _=Depends(require_admin)):
    notice = await run_in_threadpool(gateway.soft_delete_session, session_id)
    if notice is None:
        raise HTTPException(status_code=404, detail="Chat session not found")
    await gateway.notify_session_deleted(notice)
    return {"success": True, "session_id": session_id, "message": "Session deleted successfully"}


@router.delete("/sessions/{session_id}/purge", response_model=SessionActionResponse)
def purge_session(session_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    if not ChatService(db).purge_session(session_id):
        raise HTTPException(status_code=404, detail="Chat session not found")
    return {"success": True, "session_id": session_id, "message": "Session and messages permanently deleted"}
