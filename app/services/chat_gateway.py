# app/services/chat_gateway.py
"""
Real-time chat event handling.

Every inbound frame is ``{"event": name, "data": payload}``. Handlers are best effort:
a failure is logged and simply produces no outbound event, nothing is reported back to
the sender.

Sessions are created lazily, on the first message rather than on join. Database work runs
in the threadpool, never on the event loop.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.chat import (
    AdminJoinSessionPayload,
    AdminReplyPayload,
    ChatMessageOut,
    DeleteMessagePayload,
    DeleteSessionPayload,
    EndChatPayload,
    JoinSessionPayload,
    SendMessagePayload,
    SessionJoinedOut,
    dump_message,
    dump_session,
)
from app.services.chat_service import (
    ByGuest,
    ChatService,
    identity_room,
    resolve_identity,
    room_names,
    storage_room,
)
from app.services.connection_hub import Connection, ConnectionHub
from app.services.intent_matcher import match_intent
from app.services.intent_service import IntentService

logger = logging.getLogger(__name__)


@dataclass
class BotReply:
    text: str
    intent: Optional[str] = None
    intent_id: Optional[int] = None
    meta: dict = field(default_factory=dict)


class ChatGateway:
    def __init__(
        self,
        session_factory: Callable,
        hub: Optional[ConnectionHub] = None,
        bot_delay: Optional[float] = None,
        match_policy: Optional[str] = None,
        match_threshold: Optional[float] = None,
        fallback_reply: Optional[str] = None,
    ):
        self.session_factory = session_factory
        self.hub = hub or ConnectionHub()
        self.bot_delay = settings.BOT_REPLY_DELAY_SECONDS if bot_delay is None else bot_delay
        self.match_policy = match_policy or settings.INTENT_MATCH_POLICY
        self.match_threshold = settings.INTENT_MATCH_THRESHOLD if match_threshold is None else match_threshold
        self.fallback_reply = fallback_reply or settings.FALLBACK_REPLY
        self._pending = set()

        # event -> (handler, payload schema, admin only)
        self.handlers = {
            "join_session": (self.join_session, JoinSessionPayload, False),
            "send_message": (self.send_message, SendMessagePayload, False),
            "end_chat": (self.end_chat, EndChatPayload, False),
            "admin_join_session": (self.admin_join_session, AdminJoinSessionPayload, True),
            "admin_reply": (self.admin_reply, AdminReplyPayload, True),
            "delete_message": (self.delete_message, DeleteMessagePayload, True),
            "delete_session": (self.delete_session, DeleteSessionPayload, True),
        }

    # ---------- connection loop ----------

    async def serve(self, conn: Connection):
        self.hub.register(conn)
        try:
            while True:
                message = await conn.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    logger.warning("Ignoring binary frame from %s", conn.id)
                    continue
                try:
                    frame = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring non-JSON frame from %s", conn.id)
                    continue
                if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                    logger.warning("Ignoring frame without event name from %s", conn.id)
                    continue
                await self.dispatch(conn, frame["event"], frame.get("data"))
        finally:
            await self.disconnect(conn)

    async def dispatch(self, conn: Connection, event: str, data) -> bool:
        """Run one event handler. Returns False when the event was dropped or failed."""
        entry = self.handlers.get(event)
        if entry is None:
            logger.warning("Unknown event %r from %s", event, conn.id)
            return False
        handler, schema, admin_only = entry
        if admin_only and not conn.is_admin:
            logger.warning("Rejected admin event %r from non-admin %s", event, conn.id)
            return False

        try:
            payload = schema.model_validate(self._coerce(event, data))
        except ValidationError as exc:
            logger.warning(
                "Invalid %s payload from %s: %s", event, conn.id, exc.errors(include_url=False),
                extra={"event": event, "connection_id": conn.id},
            )
            return False

        try:
            await handler(conn, payload)
            return True
        except Exception:
            logger.exception(
                "Handler for %s failed (connection %s)", event, conn.id,
                extra={"event": event, "connection_id": conn.id},
            )
            return False

    @staticmethod
    def _coerce(event: str, data):
        # older widgets send a bare userId / sessionId instead of an object
        if isinstance(data, dict):
            return data
        if event == "join_session":
            return {"userId": data}
        if event == "admin_join_session":
            return {"sessionId": data}
        return data if data is not None else {}

    async def disconnect(self, conn: Connection):
        # the session stays active until end_chat or the expiry sweep
        self.hub.unregister(conn)

    # ---------- client events ----------

    async def join_session(self, conn: Connection, payload: JoinSessionPayload):
        conn.user_id = payload.user_id
        conn.guest_id = payload.guest_id
        details = payload.guest_details.model_dump(exclude_none=True) if payload.guest_details else None
        conn.guest_details = details
        identity = resolve_identity(payload.user_id, payload.guest_id, conn.id)

        def load():
            with self.session_factory() as db:
                svc = ChatService(db)
                session = svc.find_session(identity)
                if session is None:
                    room = identity_room(identity)
                    return SessionJoinedOut(), [room] if room else []
                session = svc.resume_session(session, conn.id, details)
                history = svc.get_history(session.id)
                logger.info("Existing session resumed: %s", session.id)
                joined = SessionJoinedOut(
                    session_id=session.id,
                    messages=[ChatMessageOut.model_validate(m) for m in history],
                )
                return joined, room_names(session)

        joined, rooms = await run_in_threadpool(load)
        self.hub.join_all(conn, rooms)
        await conn.emit("session_joined", joined.model_dump(by_alias=True, mode="json"))

    async def send_message(self, conn: Connection, payload: SendMessagePayload):
        user_id = payload.user_id or conn.user_id
        guest_id = payload.guest_id or conn.guest_id
        identity = resolve_identity(user_id, guest_id, conn.id)

        def store():
            with self.session_factory() as db:
                svc = ChatService(db)
                session, _ = svc.get_or_create_session(
                    identity,
                    conn.id,
                    user_id=user_id,
                    guest_id=guest_id,
                    guest_details=conn.guest_details,
                    ip_address=conn.ip_address,
                    user_agent=conn.user_agent,
                )
                msg = svc.add_message(session.id, "user", payload.message, is_read=False)
                session = svc.touch_session(session)
                return (
                    session.id,
                    room_names(session),
                    dump_message(msg),
                    dump_session(session),
                    self._pick_reply(db, payload.message),
                )

        session_id, rooms, message_out, session_out, reply = await run_in_threadpool(store)

        self.hub.join_all(conn, rooms)
        await conn.emit("message", message_out)
        await self.hub.broadcast_admins(
            "admin_new_message",
            {"sessionId": session_id, "message": message_out, "session": session_out},
        )
        self._schedule(self._send_bot_reply(conn, session_id, reply))

    async def end_chat(self, conn: Connection, payload: EndChatPayload):
        def end():
            with self.session_factory() as db:
                session = ChatService(db).end_session_for_guest(payload.guest_id)
                if session is None:
                    return None
                logger.info("Chat session ended by user: %s", session.id)
                return {"sessionId": session.id, "guestDetails": session.guest_details or {}}

        notice = await run_in_threadpool(end)
        if notice is None:
            return
        await conn.emit("chat_ended", {"success": True})
        # other open tabs of the same guest
        await self.hub.emit_to_room(ByGuest(payload.guest_id).key, "chat_ended", {"success": True}, exclude=conn)
        await self.hub.broadcast_admins("user_ended_chat", notice)

    # ---------- admin events ----------

    async def admin_join_session(self, conn: Connection, payload: AdminJoinSessionPayload):
        self.hub.join(conn, storage_room(payload.session_id))

    async def admin_reply(self, conn: Connection, payload: AdminReplyPayload):
        def store():
            with self.session_factory() as db:
                svc = ChatService(db)
                session = svc.get_session(payload.session_id, include_deleted=False)
                if session is None:
                    return None
                msg = svc.add_message(session.id, "admin", payload.message, is_read=False)
                svc.touch_session(session)
                return dump_message(msg)

        out = await run_in_threadpool(store)
        if out is None:
            logger.warning("Admin reply to unknown session %s", payload.session_id)
            return
        await self.hub.emit_to_room(storage_room(payload.session_id), "message", out)
        await conn.emit("admin_message_sent", out)

    async def delete_message(self, conn: Connection, payload: DeleteMessagePayload):
        def delete():
            with self.session_factory() as db:
                return ChatService(db).soft_delete_message(payload.message_id, payload.session_id) is not None

        if not await run_in_threadpool(delete):
            logger.warning("delete_message: message %s not found", payload.message_id)
            return
        await self.hub.emit_to_room(
            storage_room(payload.session_id),
            "message_deleted",
            {"messageId": payload.message_id, "sessionId": payload.session_id},
        )

    async def delete_session(self, conn: Connection, payload: DeleteSessionPayload):
        notice = await run_in_threadpool(self.soft_delete_session, payload.session_id)
        if notice is None:
            logger.warning("delete_session: session %s not found", payload.session_id)
            return
        await self.notify_session_deleted(notice)

    def soft_delete_session(self, session_ref) -> Optional[dict]:
        """Soft-delete by id or connection id; returns the admin notice or None."""
        with self.session_factory() as db:
            session = ChatService(db).soft_delete_session(session_ref)
            if session is None:
                return None
            return {"sessionId": session.id, "userName": session.display_name}

    async def notify_session_deleted(self, notice: dict):
        await self.hub.broadcast_admins("session_deleted", notice)

    # ---------- bot ----------

    def _pick_reply(self, db, text: str) -> BotReply:
        intents = IntentService(db).list_intents(active_only=True)
        match = match_intent(text, intents, policy=self.match_policy, threshold=self.match_threshold)
        if match is None:
            return BotReply(text=self.fallback_reply, meta={"escalate": True})
        intent = match.intent
        return BotReply(
            text=intent.response,
            intent=intent.intent,
            intent_id=intent.id,
            meta={"quickReplies": list(intent.quick_replies or [])},
        )

    def _store_bot_reply(self, session_id: int, reply: BotReply) -> dict:
        with self.session_factory() as db:
            msg = ChatService(db).add_message(
                session_id, "bot", reply.text, is_read=True, intent=reply.intent, meta=reply.meta
            )
            if reply.intent_id is not None:
                IntentService(db).record_match(reply.intent_id)
            return dump_message(msg)

    async def _send_bot_reply(self, conn: Connection, session_id: int, reply: BotReply):
        await asyncio.sleep(self.bot_delay)
        try:
            out = await run_in_threadpool(self._store_bot_reply, session_id, reply)
        except Exception:
            logger.exception("Bot reply for session %s failed", session_id)
            return
        # undeliverable if the client left during the delay
        await conn.emit("message", out)

    def _schedule(self, coro):
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def wait_idle(self):
        """Wait for scheduled bot replies to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---------- expiry ----------

    def expire_sessions(self, ttl_seconds: Optional[int] = None) -> int:
        ttl = settings.SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        with self.session_factory() as db:
            count = ChatService(db).expire_inactive_sessions(ttl)
        if count:
            logger.info("Expired %d inactive chat sessions", count)
        return count

    async def run_expiry_sweeper(self, interval: Optional[int] = None):
        interval = interval or settings.SESSION_SWEEP_INTERVAL_SECONDS
        while True:
            await asyncio.sleep(interval)
            try:
                await run_in_threadpool(self.expire_sessions)
            except Exception:
                logger.exception("Session expiry sweep failed")
