# tests/test_chat_service.py
from datetime import timedelta

from app import models
from app.services.chat_service import (
    ByConnection,
    ByGuest,
    ByUser,
    ChatService,
    identity_room,
    resolve_identity,
    room_names,
)
from app.utils.clock import utcnow


def test_identity_priority_user_then_guest_then_connection():
    assert resolve_identity("u1", "g1", "c1") == ByUser("u1")
    assert resolve_identity(None, "g1", "c1") == ByGuest("g1")
    assert resolve_identity(None, None, "c1") == ByConnection("c1")
    assert ByGuest("g1").key == "guest:g1"


def test_get_or_create_session_is_idempotent_per_identity(db):
    svc = ChatService(db)
    first, created = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    again, created_again = svc.get_or_create_session(ByGuest("g1"), "c2", guest_id="g1")
    assert created and not created_again
    assert first.id == again.id
    assert db.query(models.ChatSession).count() == 1


def test_concurrent_create_reuses_winning_row(db, monkeypatch):
    svc = ChatService(db)
    winner, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")

    # the lookup misses, as it would for a creator racing the winner
    monkeypatch.setattr(svc, "find_session", lambda identity: None)
    loser, created = svc.get_or_create_session(ByGuest("g1"), "c2", guest_id="g1")

    assert not created
    assert loser.id == winner.id
    assert db.query(models.ChatSession).count() == 1


def test_logged_in_user_is_matched_on_user_id(db):
    svc = ChatService(db)
    by_user, _ = svc.get_or_create_session(ByUser("u1"), "c1", user_id="u1", guest_id="legacy")
    svc.get_or_create_session(ByGuest("other"), "c2", guest_id="other")
    assert svc.find_session(resolve_identity("u1", "other", "c3")).id == by_user.id


def test_resume_merges_guest_details(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(
        ByGuest("g1"), "c1", guest_id="g1", guest_details={"name": "Asha", "phone": "111"}
    )
    session.is_active = False
    db.commit()

    resumed = svc.resume_session(session, "c9", {"phone": "222", "email": "a@example.com"})
    assert resumed.socket_id == "c9"
    assert resumed.is_active is True
    assert resumed.guest_details == {"name": "Asha", "phone": "222", "email": "a@example.com"}


def test_room_names_prefer_guest_id(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1", user_id="u1")
    assert room_names(session) == ["guest:g1", f"session:{session.id}"]

    by_user, _ = svc.get_or_create_session(ByUser("u2"), "c3", user_id="u2")
    assert room_names(by_user) == ["user:u2", f"session:{by_user.id}"]

    anon, _ = svc.get_or_create_session(ByConnection("c2"), "c2")
    assert room_names(anon) == [f"session:{anon.id}"]


def test_guest_room_never_collides_with_session_room(db):
    svc = ChatService(db)
    first, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    # a guest whose id looks like another session id
    numeric, _ = svc.get_or_create_session(ByGuest(str(first.id)), "c2", guest_id=str(first.id))
    assert not set(room_names(first)) & set(room_names(numeric))
    assert identity_room(ByConnection("c9")) is None


def test_history_is_ordered_and_hides_deleted(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    first = svc.add_message(session.id, "user", "one")
    second = svc.add_message(session.id, "bot", "two", is_read=True)
    third = svc.add_message(session.id, "admin", "three")
    svc.soft_delete_message(second.id, session.id)

    visible = svc.get_history(session.id)
    assert [m.id for m in visible] == [first.id, third.id]

    everything = svc.get_history(session.id, include_deleted=True)
    assert [m.id for m in everything] == [first.id, second.id, third.id]
    times = [m.created_at for m in everything]
    assert times == sorted(times)


def test_end_session_for_guest_keeps_messages(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    svc.add_message(session.id, "user", "hello")

    ended = svc.end_session_for_guest("g1")
    assert ended.is_active is False
    assert ended.ended_by_user is True
    assert ended.ended_at is not None
    assert len(svc.get_history(session.id)) == 1
    assert svc.end_session_for_guest("nobody") is None


def test_soft_delete_session_frees_identity(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    svc.add_message(session.id, "user", "hello")

    deleted = svc.soft_delete_session(session.id)
    assert deleted.is_deleted and not deleted.is_active
    assert svc.find_session(ByGuest("g1")) is None
    assert svc.list_sessions() == []
    assert [s.id for s in svc.list_sessions(include_deleted=True)] == [session.id]
    # messages stay readable by session id
    assert len(svc.get_history(session.id)) == 1

    fresh, created = svc.get_or_create_session(ByGuest("g1"), "c2", guest_id="g1")
    assert created and fresh.id != session.id


def test_soft_delete_session_by_connection_id(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "sock-abc", guest_id="g1")
    assert svc.soft_delete_session("sock-abc").id == session.id
    assert svc.soft_delete_session("sock-abc") is None


def test_purge_cascades_to_messages(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    svc.add_message(session.id, "user", "hello")
    assert svc.purge_session(session.id) is True
    assert db.query(models.ChatMessage).count() == 0
    assert svc.purge_session(session.id) is False


def test_expire_inactive_sessions(db):
    svc = ChatService(db)
    stale, _ = svc.get_or_create_session(ByGuest("old"), "c1", guest_id="old")
    fresh, _ = svc.get_or_create_session(ByGuest("new"), "c2", guest_id="new")
    stale.last_activity = utcnow() - timedelta(days=2)
    db.commit()

    assert svc.expire_inactive_sessions(86400) == 1
    db.refresh(stale)
    db.refresh(fresh)
    assert stale.is_active is False and stale.expired_at is not None
    assert fresh.is_active is True


def test_mark_read_only_touches_user_messages(db):
    svc = ChatService(db)
    session, _ = svc.get_or_create_session(ByGuest("g1"), "c1", guest_id="g1")
    svc.add_message(session.id, "user", "a")
    svc.add_message(session.id, "user", "b")
    svc.add_message(session.id, "admin", "c")
    assert svc.mark_read(session.id) == 2
    senders_unread = {m.sender for m in svc.get_history(session.id) if not m.is_read}
    assert senders_unread == {"admin"}
