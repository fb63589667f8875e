# app/services/chat_service.py
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Union

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


# ---------- session identity ----------

@dataclass(frozen=True)
class ByUser:
    user_id: str

    @property
    def key(self) -> str:
        return f"user:{self.user_id}"


@dataclass(frozen=True)
class ByGuest:
    guest_id: str

    @property
    def key(self) -> str:
        return f"guest:{self.guest_id}"


@dataclass(frozen=True)
class ByConnection:
    connection_id: str

    @property
    def key(self) -> str:
        return f"connection:{self.connection_id}"


SessionIdentity = Union[ByUser, ByGuest, ByConnection]


def resolve_identity(user_id: Optional[str], guest_id: Optional[str], connection_id: str) -> SessionIdentity:
    """userId wins over guestId, which wins over the live connection id."""
    if user_id:
        return ByUser(user_id)
    if guest_id:
        return ByGuest(guest_id)
    return ByConnection(connection_id)


def identity_room(identity: SessionIdentity) -> Optional[str]:
    """Room shared by every tab of one guest or user. Bare connections get none."""
    if isinstance(identity, ByConnection):
        return None
    return identity.key


def room_names(session) -> List[str]:
    """Rooms a client connection joins for a session: its identity room and its storage room."""
    if session.guest_id:
        rooms = [ByGuest(session.guest_id).key]
    elif session.user_id:
        rooms = [ByUser(session.user_id).key]
    else:
        rooms = []
    return rooms + [storage_room(session.id)]


def storage_room(session_id: int) -> str:
    return f"session:{session_id}"


class ChatService:
    def __init__(self, db: Session):
        self.db = db

    # ---------- sessions ----------

    def find_session(self, identity: SessionIdentity) -> Optional[models.ChatSession]:
        q = self.db.query(models.ChatSession).filter(models.ChatSession.is_deleted == False)
        if isinstance(identity, ByUser):
            q = q.filter(models.ChatSession.user_id == identity.user_id)
        elif isinstance(identity, ByGuest):
            q = q.filter(models.ChatSession.guest_id == identity.guest_id)
        else:
            q = q.filter(models.ChatSession.socket_id == identity.connection_id)
        return q.order_by(models.ChatSession.last_activity.desc()).first()

    def get_session(self, session_id: int, include_deleted: bool = True) -> Optional[models.ChatSession]:
        q = self.db.query(models.ChatSession).filter(models.ChatSession.id == session_id)
        if not include_deleted:
            q = q.filter(models.ChatSession.is_deleted == False)
        return q.first()

    def get_session_or_404(self, session_id: int) -> models.ChatSession:
        session = self.get_session(session_id)
        if not session:
            raise HTTPException(status_code=404, detail="Chat session not found")
        return session

    def resume_session(
        self,
        session: models.ChatSession,
        connection_id: str,
        guest_details: Optional[dict] = None,
    ) -> models.ChatSession:
        session.socket_id = connection_id
        session.is_active = True
        if guest_details:
            # shallow merge, newly supplied fields win
            session.guest_details = {**(session.guest_details or {}), **guest_details}
        self.db.commit()
        self.db.refresh(session)
        return session

    def get_or_create_session(
        self,
        identity: SessionIdentity,
        connection_id: str,
        user_id: Optional[str] = None,
        guest_id: Optional[str] = None,
        guest_details: Optional[dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ):
        """
        Return (session, created). The identity key is unique, so a concurrent
        creator for the same identity makes our insert fail and we return its row.
        """
        session = self.find_session(identity)
        if session:
            return session, False

        session = models.ChatSession(
            identity_key=identity.key,
            user_id=user_id,
            guest_id=guest_id,
            guest_details=guest_details or {},
            socket_id=connection_id,
            is_active=True,
            last_activity=utcnow(),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:512] or None,
        )
        self.db.add(session)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = (
                self.db.query(models.ChatSession)
                .filter(models.ChatSession.identity_key == identity.key)
                .first()
            )
            if existing is None:
                raise
            logger.info("Session for %s created concurrently, reusing %s", identity.key, existing.id)
            return existing, False

        self.db.refresh(session)
        logger.info("New chat session %s created on first message (%s)", session.id, identity.key)
        return session, True

    def touch_session(self, session: models.ChatSession, when: Optional[datetime] = None):
        session.last_activity = when or utcnow()
        session.is_active = True
        self.db.commit()
        self.db.refresh(session)
        return session

    def end_session_for_guest(self, guest_id: str) -> Optional[models.ChatSession]:
        session = self.find_session(ByGuest(guest_id))
        if not session:
            return None
        session.is_active = False
        session.ended_at = utcnow()
        session.ended_by_user = True
        self.db.commit()
        self.db.refresh(session)
        return session

    def soft_delete_session(self, session_ref: Union[int, str]) -> Optional[models.ChatSession]:
        """
        Hide a session from listings and free its identity for a new conversation.
        Accepts the storage id or, for older consoles, the last-known connection id.
        Messages are left untouched.
        """
        session = None
        if isinstance(session_ref, int) or str(session_ref).isdigit():
            session = self.get_session(int(session_ref), include_deleted=False)
        if session is None:
            session = (
                self.db.query(models.ChatSession)
                .filter(
                    models.ChatSession.socket_id == str(session_ref),
                    models.ChatSession.is_deleted == False,
                )
                .first()
            )
        if not session:
            return None

        session.is_deleted = True
        session.deleted_at = utcnow()
        session.is_active = False
        session.identity_key = None
        self.db.commit()
        self.db.refresh(session)
        return session

    def purge_session(self, session_id: int) -> bool:
        """Hard delete: removes the session row and cascades to its messages."""
        session = self.get_session(session_id)
        if not session:
            return False
        self.db.delete(session)
        self.db.commit()
        return True

    def escalate_session(self, session_id: int) -> models.ChatSession:
        session = self.get_session_or_404(session_id)
        if not session.escalated:
            session.escalated = True
            session.escalated_at = utcnow()
            self.db.commit()
            self.db.refresh(session)
        return session

    def list_sessions(self, status: str = "all", limit: int = 50, include_deleted: bool = False):
        q = self.db.query(models.ChatSession)
        if not include_deleted:
            q = q.filter(models.ChatSession.is_deleted == False)
        if status == "active":
            q = q.filter(models.ChatSession.is_active == True)
        return (
            q.order_by(models.ChatSession.last_activity.desc(), models.ChatSession.id.desc())
            .limit(limit)
            .all()
        )

    def expire_inactive_sessions(self, ttl_seconds: int, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        cutoff = now - timedelta(seconds=ttl_seconds)
        stale = (
            self.db.query(models.ChatSession)
            .filter(
                models.ChatSession.is_active == True,
                models.ChatSession.last_activity < cutoff,
            )
            .all()
        )
        for session in stale:
            session.is_active = False
            session.expired_at = now
        if stale:
            self.db.commit()
        return len(stale)

    # ---------- messages ----------

    def get_history(self, session_id: int, include_deleted: bool = False) -> List[models.ChatMessage]:
        q = self.db.query(models.ChatMessage).filter(models.ChatMessage.session_id == session_id)
        if not include_deleted:
            q = q.filter(models.ChatMessage.is_deleted == False)
        return q.order_by(models.ChatMessage.created_at.asc(), models.ChatMessage.id.asc()).all()

    def add_message(
        self,
        session_id: int,
        sender: str,
        text: str,
        is_read: bool = False,
        intent: Optional[str] = None,
        meta: Optional[dict] = None,
    ) -> models.ChatMessage:
        if sender not in models.chat_message.SENDERS:
            raise ValueError(f"Unknown sender: {sender}")
        msg = models.ChatMessage(
            session_id=session_id,
            sender=sender,
            message=text,
            is_read=is_read,
            intent=intent,
            meta=meta or {},
        )
        self.db.add(msg)
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def soft_delete_message(self, message_id: int, session_id: Optional[int] = None) -> Optional[models.ChatMessage]:
        q = self.db.query(models.ChatMessage).filter(models.ChatMessage.id == message_id)
        if session_id is not None:
            q = q.filter(models.ChatMessage.session_id == session_id)
        msg = q.first()
        if not msg:
            return None
        msg.is_deleted = True
        self.db.commit()
        self.db.refresh(msg)
        return msg

    def mark_read(self, session_id: int) -> int:
        updated = (
            self.db.query(models.ChatMessage)
            .filter(
                models.ChatMessage.session_id == session_id,
                models.ChatMessage.sender == "user",
                models.ChatMessage.is_read == False,
            )
            .update({models.ChatMessage.is_read: True}, synchronize_session=False)
        )
        self.db.commit()
        return updated
