"""View State — tests for folding events into one view's state.

Tests cover:
    - NEW_MESSAGE only lands in the active room
    - ROOM_CREATED / ROOM_DELETED keep the room list current and boot the viewer out
    - USER_UPDATE / USER_JOINED / USER_LEFT keep the user list current
"""

from datetime import datetime, timezone

from roomcast.core.domain_types import EventType
from roomcast.core.view_state import ROOM_DELETED_NOTICE, ViewState, apply_event
from roomcast.schemas.events import Event
from roomcast.schemas.records import Room, User


def _user(user_id: str = "u1", **fields) -> User:
    data = {
        "id": user_id, "name": f"User {user_id}", "email": f"{user_id}@test.com",
        "credential": "pw", "avatar_ref": "https://example.test/a.png",
    }
    data.update(fields)
    return User(**data)


def _event(event_type: EventType, payload: dict, sequence: int = 1) -> Event:
    return Event(type=event_type, payload=payload, sequence=sequence)


def _message_payload(room_id: str, message_id: int = 1) -> dict:
    return {
        "id": message_id, "room_id": room_id, "sender_id": "u2",
        "sender_name": "User u2", "sender_avatar_ref": "a",
        "content": "hello", "kind": "text",
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc).isoformat(),
    }


def _state() -> ViewState:
    return ViewState(
        current_user=_user("u1"),
        rooms=[Room(id="r1", name="Lobby", owner_id="system")],
        users=[_user("u1"), _user("u2", online=True)],
        active_room_id="r1",
    )


def test_new_message_for_active_room_is_appended():
    state = _state()
    apply_event(state, _event(EventType.NEW_MESSAGE, _message_payload("r1")))
    assert [m.id for m in state.messages] == [1]


def test_new_message_for_other_room_is_ignored():
    state = _state()
    apply_event(state, _event(EventType.NEW_MESSAGE, _message_payload("r2")))
    assert state.messages == []


def test_room_created_is_appended_once():
    state = _state()
    payload = {"id": "r5", "name": "New", "is_private": False, "owner_id": "u2"}
    apply_event(state, _event(EventType.ROOM_CREATED, payload))
    apply_event(state, _event(EventType.ROOM_CREATED, payload, 2))
    assert [r.id for r in state.rooms] == ["r1", "r5"]


def test_room_deleted_boots_viewer_out_of_active_room():
    state = _state()
    apply_event(state, _event(EventType.NEW_MESSAGE, _message_payload("r1")))
    apply_event(state, _event(EventType.ROOM_DELETED, {"room_id": "r1"}, 2))
    assert state.rooms == []
    assert state.active_room_id is None
    assert state.messages == []
    assert state.notices == [ROOM_DELETED_NOTICE]


def test_room_deleted_elsewhere_leaves_active_room_alone():
    state = _state()
    state.rooms.append(Room(id="r2", name="Other", owner_id="u2"))
    apply_event(state, _event(EventType.ROOM_DELETED, {"room_id": "r2"}))
    assert state.active_room_id == "r1"
    assert state.notices == []


def test_user_update_replaces_user_and_current_user():
    state = _state()
    renamed = _user("u1", name="Alice Renamed").model_dump(mode="json")
    apply_event(state, _event(EventType.USER_UPDATE, renamed))
    assert state.find_user("u1").name == "Alice Renamed"
    assert state.current_user.name == "Alice Renamed"


def test_user_update_for_someone_else_keeps_current_user():
    state = _state()
    apply_event(state, _event(
        EventType.USER_UPDATE, _user("u2", name="Bob 2").model_dump(mode="json"),
    ))
    assert state.current_user.name == "User u1"
    assert state.find_user("u2").name == "Bob 2"


def test_user_joined_skips_duplicates():
    state = _state()
    apply_event(state, _event(EventType.USER_JOINED, _user("u2").model_dump(mode="json")))
    apply_event(state, _event(EventType.USER_JOINED, _user("u9").model_dump(mode="json")))
    assert [u.id for u in state.users] == ["u1", "u2", "u9"]


def test_user_left_marks_offline():
    state = _state()
    apply_event(state, _event(EventType.USER_LEFT, {"user_id": "u2"}))
    assert state.find_user("u2").online is False
