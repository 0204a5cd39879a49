import json

import pytest
from sqlalchemy.exc import OperationalError

from marknote.realtime.session import CollabSession


class FakeNotes:
    def __init__(self, *existing):
        self.existing = set(existing)
        self.checked = []

    async def exists(self, note_id):
        self.checked.append(note_id)
        return note_id in self.existing


def frame(**payload):
    return json.dumps(payload)


@pytest.fixture
def open_session(hub, connect):
    def _open(name="Alice", notes=None, trust=False, anonymous=False, validate=True):
        connection, channel = connect(name)
        if anonymous:
            connection.user_id = None
        session = CollabSession(
            hub,
            connection,
            notes=notes,
            validate_rooms=validate,
            trust_client_identity=trust,
        )
        return session, channel

    return _open


@pytest.mark.asyncio
async def test_join_acks_with_participants(open_session):
    alice, ch_alice = open_session("Alice")
    bob, ch_bob = open_session("Bob")

    await alice.handle_frame(frame(type="join_note", roomId="note-42"))
    await bob.handle_frame(frame(type="join_note", roomId="note-42"))

    ack = ch_bob.of_type("joined")[0]
    assert ack["roomId"] == "note-42"
    assert [p["displayIdentity"] for p in ack["participants"]] == ["Alice", "Bob"]
    assert ch_alice.of_type("user_joined")[0]["displayIdentity"] == "Bob"


@pytest.mark.asyncio
async def test_join_rejected_for_unknown_note(open_session, hub):
    notes = FakeNotes("note-1")
    alice, channel = open_session("Alice", notes=notes)

    await alice.handle_frame(frame(type="join_note", roomId="nope"))

    rejected = channel.of_type("join_rejected")
    assert rejected == [
        {"type": "join_rejected", "ts": rejected[0]["ts"], "roomId": "nope", "reason": "note_not_found"}
    ]
    assert hub.rooms.members_of("nope") == frozenset()
    assert notes.checked == ["nope"]


@pytest.mark.asyncio
async def test_validation_can_be_disabled(open_session, hub):
    alice, channel = open_session("Alice", notes=FakeNotes(), validate=False)

    await alice.handle_frame(frame(type="join_note", roomId="anything"))

    assert channel.of_type("joined")
    assert alice.connection_id in hub.rooms.members_of("anything")


@pytest.mark.asyncio
async def test_edit_relayed_to_others_with_verified_identity(open_session):
    alice, ch_alice = open_session("Alice")
    bob, ch_bob = open_session("Bob")
    await alice.handle_frame(frame(type="join_note", roomId="r"))
    await bob.handle_frame(frame(type="join_note", roomId="r"))

    await alice.handle_frame(
        frame(type="edit_note", roomId="r", content="# hi", cursorPosition=4, displayIdentity="Mallory")
    )

    edited = ch_bob.of_type("note_edited")
    assert len(edited) == 1
    assert edited[0]["content"] == "# hi"
    assert edited[0]["cursorPosition"] == 4
    assert edited[0]["displayIdentity"] == "Alice"
    assert ch_alice.of_type("note_edited") == []


@pytest.mark.asyncio
async def test_client_identity_honoured_when_trusted(open_session):
    alice, _ = open_session("Alice", trust=True)
    bob, ch_bob = open_session("Bob")
    await alice.handle_frame(frame(type="join_note", roomId="r"))
    await bob.handle_frame(frame(type="join_note", roomId="r"))

    await alice.handle_frame(frame(type="cursor_move", roomId="r", cursorPosition=7, displayIdentity="Ally"))

    moved = ch_bob.of_type("cursor_moved")[0]
    assert moved["displayIdentity"] == "Ally"
    assert moved["cursorPosition"] == 7


@pytest.mark.asyncio
async def test_anonymous_session_uses_client_identity(open_session):
    anon, _ = open_session(None, anonymous=True)
    bob, ch_bob = open_session("Bob")
    await bob.handle_frame(frame(type="join_note", roomId="r"))

    await anon.handle_frame(frame(type="join_note", roomId="r", displayIdentity="guest"))

    assert ch_bob.of_type("user_joined")[0]["displayIdentity"] == "guest"


@pytest.mark.asyncio
async def test_edit_outside_room_is_an_error(open_session):
    alice, channel = open_session("Alice")

    await alice.handle_frame(frame(type="edit_note", roomId="r", content="x"))
    await alice.handle_frame(frame(type="cursor_move", roomId="r", cursorPosition=1))

    errors = channel.of_type("error")
    assert [e["code"] for e in errors] == ["not_in_room", "not_in_room"]
    assert errors[0]["roomId"] == "r"


@pytest.mark.asyncio
async def test_leave_note(open_session, hub):
    alice, ch_alice = open_session("Alice")
    bob, _ = open_session("Bob")
    await alice.handle_frame(frame(type="join_note", roomId="r"))
    await bob.handle_frame(frame(type="join_note", roomId="r"))

    await bob.handle_frame(frame(type="leave_note", roomId="r"))

    assert hub.rooms.members_of("r") == frozenset({alice.connection_id})
    assert ch_alice.of_type("user_left")[0]["displayIdentity"] == "Bob"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw, code",
    [
        ("not json", "malformed_frame"),
        ("[1, 2]", "malformed_frame"),
        (json.dumps({"type": "dance"}), "unknown_type"),
        (json.dumps({"roomId": "r"}), "unknown_type"),
        (json.dumps({"type": "edit_note", "roomId": "r"}), "invalid_message"),
        (json.dumps({"type": "cursor_move", "roomId": "r", "cursorPosition": -1}), "invalid_message"),
    ],
)
async def test_bad_frames_answered_with_error(open_session, raw, code):
    alice, channel = open_session("Alice")

    await alice.handle_frame(raw)

    assert [e["code"] for e in channel.of_type("error")] == [code]


@pytest.mark.asyncio
async def test_ping_pong_and_heartbeat_bookkeeping(open_session):
    alice, channel = open_session("Alice")

    await alice.handle_frame(frame(type="ping"))
    assert channel.frames[-1]["type"] == "pong"

    assert alice.record_ping_sent() == 1
    assert alice.record_ping_sent() == 2
    assert channel.frames[-1]["type"] == "ping"

    await alice.handle_frame(frame(type="pong"))
    assert alice.missed_pings == 0


@pytest.mark.asyncio
async def test_note_42_scenario(open_session, hub):
    a, ch_a = open_session("A")
    b, ch_b = open_session("B")
    await a.handle_frame(frame(type="join_note", roomId="note-42"))
    await b.handle_frame(frame(type="join_note", roomId="note-42"))
    ch_a.frames.clear()

    await a.handle_frame(frame(type="edit_note", roomId="note-42", content="hello"))

    assert ch_b.of_type("note_edited")[0]["content"] == "hello"
    assert ch_a.frames == []

    await hub.disconnect(b.connection_id)

    left = ch_a.of_type("user_left")
    assert len(left) == 1
    assert left[0]["displayIdentity"] == "B"
    assert hub.rooms.members_of("note-42") == frozenset({a.connection_id})


class UnavailableNotes:
    async def exists(self, note_id):
        raise OperationalError("SELECT notes.id", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_join_rejected_when_validation_is_unavailable(open_session, hub):
    alice, channel = open_session("Alice", notes=FakeNotes("note-1"))
    await alice.handle_frame(frame(type="join_note", roomId="note-1"))
    alice._notes = UnavailableNotes()

    await alice.handle_frame(frame(type="join_note", roomId="note-2"))

    rejected = channel.of_type("join_rejected")
    assert [(r["roomId"], r["reason"]) for r in rejected] == [("note-2", "validation_unavailable")]
    assert hub.rooms.rooms_of(alice.connection_id) == frozenset({"note-1"})

    # the session keeps serving frames
    await alice.handle_frame(frame(type="ping"))
    assert channel.of_type("pong")
