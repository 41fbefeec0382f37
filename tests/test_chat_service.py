import pytest

from conftest import principal_of
from marketdesk.domain.entities import ChatSenderType, ChatStatus, UserRole
from marketdesk.domain.errors import InvalidState, NotFound, ValidationError


@pytest.fixture
def chat(services):
    return services["chat_service"]


@pytest.fixture
def people(make_user):
    return {
        "owner": make_user(),
        "stranger": make_user(),
        "admin": make_user(role=UserRole.ADMIN),
        "other_admin": make_user(role=UserRole.ADMIN),
    }


def test_open_session_is_reused(chat, people):
    first = chat.get_or_create_open_session(people["owner"].id)
    again = chat.get_or_create_open_session(people["owner"].id)
    assert first.id == again.id
    assert first.status == ChatStatus.OPEN


def test_closed_session_is_not_reused(chat, people):
    owner = principal_of(people["owner"])
    first = chat.get_or_create_open_session(owner.user_id)
    chat.close(first.id, owner)
    second = chat.get_or_create_open_session(owner.user_id)
    assert second.id != first.id


def test_append_sets_sender_type_and_bumps_activity(chat, people):
    session = chat.get_or_create_open_session(people["owner"].id)
    posted = chat.append(session.id, principal_of(people["owner"]), "hello")
    assert posted.message.sender_type == ChatSenderType.USER
    assert posted.needs_admin is True

    reply = chat.append(session.id, principal_of(people["admin"]), "hi, how can I help?")
    assert reply.message.sender_type == ChatSenderType.ADMIN
    assert reply.needs_admin is False

    refreshed = chat.get_session(session.id, principal_of(people["owner"]))
    assert refreshed.last_message_at is not None


def test_append_access_matrix(chat, people):
    session = chat.get_or_create_open_session(people["owner"].id)
    with pytest.raises(NotFound):
        chat.append(session.id, principal_of(people["stranger"]), "let me in")
    # any admin passes, assigned or not
    chat.append(session.id, principal_of(people["other_admin"]), "admin here")


def test_append_content_rules(chat, people):
    session = chat.get_or_create_open_session(people["owner"].id)
    owner = principal_of(people["owner"])
    with pytest.raises(ValidationError):
        chat.append(session.id, owner, "   ")
    posted = chat.append(session.id, owner, None, audio_url="https://cdn.example.com/v.ogg")
    assert posted.message.message == ""
    assert posted.message.audio_url == "https://cdn.example.com/v.ogg"


def test_append_to_closed_session_rejected(chat, people):
    owner = principal_of(people["owner"])
    session = chat.get_or_create_open_session(owner.user_id)
    chat.close(session.id, owner)
    chat.close(session.id, owner)  # idempotent
    with pytest.raises(InvalidState):
        chat.append(session.id, owner, "anyone?")


def test_unknown_session_is_not_found(chat, people):
    with pytest.raises(NotFound):
        chat.append("missing", principal_of(people["admin"]), "x")
    with pytest.raises(NotFound):
        chat.list_messages("missing", principal_of(people["admin"]))


def test_list_messages_pagination(chat, people):
    owner = principal_of(people["owner"])
    session = chat.get_or_create_open_session(owner.user_id)
    for i in range(7):
        chat.append(session.id, owner, f"m{i}")

    page = chat.list_messages(session.id, owner, page=2, limit=3)
    assert [m.message for m in page.messages] == ["m3", "m4", "m5"]
    assert page.total == 7
    assert page.total_pages == 3

    last = chat.list_messages(session.id, owner, page=3, limit=3)
    assert [m.message for m in last.messages] == ["m6"]

    beyond = chat.list_messages(session.id, owner, page=4, limit=3)
    assert beyond.messages == []


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101)])
def test_list_messages_rejects_bad_paging(chat, people, page, limit):
    owner = principal_of(people["owner"])
    session = chat.get_or_create_open_session(owner.user_id)
    with pytest.raises(ValidationError):
        chat.list_messages(session.id, owner, page=page, limit=limit)


def test_admin_bypass_on_list_messages(chat, people):
    owner = principal_of(people["owner"])
    session = chat.get_or_create_open_session(owner.user_id)
    chat.append(session.id, owner, "help")
    page = chat.list_messages(session.id, principal_of(people["other_admin"]))
    assert page.total == 1
    with pytest.raises(NotFound):
        chat.list_messages(session.id, principal_of(people["stranger"]))


def test_assign_admin(chat, people):
    owner = principal_of(people["owner"])
    session = chat.get_or_create_open_session(owner.user_id)
    chat.close(session.id, owner)

    assigned = chat.assign_admin(session.id, people["admin"].id)
    assert assigned.admin_id == people["admin"].id
    assert assigned.status == ChatStatus.OPEN

    with pytest.raises(NotFound):
        chat.assign_admin(session.id, people["stranger"].id)
    with pytest.raises(NotFound):
        chat.assign_admin("missing", people["admin"].id)


def test_mark_read_only_touches_others_messages(chat, people):
    owner = principal_of(people["owner"])
    admin = principal_of(people["admin"])
    session = chat.get_or_create_open_session(owner.user_id)
    chat.append(session.id, owner, "q1")
    chat.append(session.id, admin, "a1")
    chat.append(session.id, admin, "a2")

    assert chat.mark_read(session.id, principal_of(people["stranger"])) == 0
    assert chat.mark_read(session.id, owner) == 2
    assert chat.mark_read(session.id, owner) == 0

    page = chat.list_messages(session.id, owner)
    by_text = {m.message: m for m in page.messages}
    assert by_text["q1"].is_read is False
    assert by_text["a1"].is_read is True and by_text["a1"].read_at is not None


def test_list_sessions_summaries(chat, people):
    owner = principal_of(people["owner"])
    admin = principal_of(people["admin"])
    quiet = chat.get_or_create_open_session(people["stranger"].id)
    session = chat.get_or_create_open_session(owner.user_id)
    chat.append(session.id, owner, "first")
    chat.append(session.id, admin, "reply")

    mine = chat.list_sessions_for(owner)
    assert [s.session.id for s in mine] == [session.id]
    assert mine[0].last_message.message == "reply"
    assert mine[0].unread_count == 1

    everything = chat.list_sessions_for(admin)
    assert [s.session.id for s in everything] == [session.id, quiet.id]
    assert everything[0].unread_count == 1
    assert everything[1].last_message is None

    assert chat.list_sessions_for(admin, status=ChatStatus.CLOSED) == []


def test_unread_count(chat, people):
    owner = principal_of(people["owner"])
    admin = principal_of(people["admin"])
    session = chat.get_or_create_open_session(owner.user_id)
    chat.assign_admin(session.id, admin.user_id)
    chat.append(session.id, owner, "ping")
    chat.append(session.id, owner, "ping again")
    chat.append(session.id, admin, "pong")

    assert chat.unread_count(admin) == 2
    assert chat.unread_count(owner) == 1
    assert chat.unread_count(principal_of(people["other_admin"])) == 0


def test_accessible_session_ids(chat, people):
    owner_session = chat.get_or_create_open_session(people["owner"].id)
    other_session = chat.get_or_create_open_session(people["stranger"].id)

    assert chat.accessible_session_ids(principal_of(people["owner"])) == [owner_session.id]
    assert set(chat.accessible_session_ids(principal_of(people["admin"]))) == {owner_session.id, other_session.id}
