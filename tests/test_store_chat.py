import asyncio

import httpx

from railops.adapters import Transport, make_adapters
from railops.adapters.chatbot import APOLOGY
from railops.api.app import app
from railops.api.models import ChatMessage
from railops.errors import TransportError
from railops.store import AppStore
from railops.store.app_store import CHAT_ERROR_TEXT
from conftest import FakeTransport, env


def reply(text, msg_id="msg-ai-1"):
    return env([ChatMessage(id=msg_id, role="assistant", text=text).wire()])


async def test_create_session_ids_are_unique(store):
    a = store.create_chat_session()
    b = store.create_chat_session()
    assert a != b
    assert store.get_chat_session(a).messages == []
    assert len(store.state.chat_sessions) == 2


async def test_send_appends_user_then_replies(store, fake):
    fake.routes[("POST", "/chat")] = reply("All trains on time.")
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "status?")
    msgs = store.get_chat_session(sid).messages
    assert [m.role for m in msgs] == ["user", "assistant"]
    assert msgs[0].text == "status?"
    assert msgs[1].text == "All trains on time."


async def test_user_message_visible_before_reply(store, fake):
    gate = asyncio.Event()

    async def slow(body, params):
        await gate.wait()
        return reply("done")

    fake.routes[("POST", "/chat")] = slow
    sid = store.create_chat_session()
    task = asyncio.create_task(store.send_chat_message(sid, "hello"))
    await asyncio.sleep(0)
    assert [m.text for m in store.get_chat_session(sid).messages] == ["hello"]
    gate.set()
    await task
    assert len(store.get_chat_session(sid).messages) == 2


async def test_missing_session_is_created(store, fake):
    fake.routes[("POST", "/chat")] = reply("hi")
    await store.send_chat_message("session-ghost", "hello")
    session = store.get_chat_session("session-ghost")
    assert [m.role for m in session.messages] == ["user", "assistant"]


async def test_backend_failure_degrades_to_message(store):
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "hello")
    msgs = store.get_chat_session(sid).messages
    assert msgs[-1].text == APOLOGY
    assert store.state.error is None


class BrokenChatbot:
    async def send_chat_message(self, session_id, text, message_id=None):
        raise TransportError("adapter exploded")


async def test_raising_adapter_degrades_to_message():
    fake = FakeTransport()
    store = AppStore(transport=fake, adapters=make_adapters(fake, chatbot=BrokenChatbot()))
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "hello")
    msgs = store.get_chat_session(sid).messages
    assert msgs[-1].role == "assistant"
    assert msgs[-1].text == CHAT_ERROR_TEXT
    assert store.state.error is None


async def test_concurrent_sessions_stay_separate(store, fake):
    gates = {"a": asyncio.Event(), "b": asyncio.Event()}

    async def handler(body, params):
        key = body["message"]
        await gates[key].wait()
        return reply(f"answer {key}", msg_id=f"msg-{key}")

    fake.routes[("POST", "/chat")] = handler
    a, b = store.create_chat_session(), store.create_chat_session()
    ta = asyncio.create_task(store.send_chat_message(a, "a"))
    tb = asyncio.create_task(store.send_chat_message(b, "b"))
    await asyncio.sleep(0)
    gates["b"].set()
    await tb
    gates["a"].set()
    await ta
    assert [m.text for m in store.get_chat_session(a).messages] == ["a", "answer a"]
    assert [m.text for m in store.get_chat_session(b).messages] == ["b", "answer b"]


async def test_repeated_message_ids_are_not_duplicated(store, fake):
    fake.routes[("POST", "/chat")] = reply("same", msg_id="msg-fixed")
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "one")
    await store.send_chat_message(sid, "two")
    ids = [m.id for m in store.get_chat_session(sid).messages]
    assert ids.count("msg-fixed") == 1
    assert len(ids) == 3


async def test_restore_merges_server_history(store, fake):
    history = [ChatMessage(id="m1", role="user", text="hi").wire(),
               ChatMessage(id="m2", role="assistant", text="hello").wire()]
    fake.routes[("GET", "/chat")] = env(history)
    session = await store.restore_chat_session("session-001")
    assert [m.id for m in session.messages] == ["m1", "m2"]
    await store.restore_chat_session("session-001")
    assert len(store.get_chat_session("session-001").messages) == 2


async def test_chat_sessions_are_not_persisted(store, storage, fake):
    fake.routes[("POST", "/chat")] = reply("hi")
    await store.send_chat_message(store.create_chat_session(), "hello")
    assert "chat_sessions" not in storage.saved.model_dump()


async def test_sent_message_id_travels_to_server(store, fake):
    fake.routes[("POST", "/chat")] = reply("ok")
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "hello")
    _, _, body = fake.calls[-1]
    assert body["messageId"] == store.get_chat_session(sid).messages[0].id


async def test_restore_after_send_keeps_order(store, fake):
    fake.routes[("POST", "/chat")] = reply("hi there", msg_id="m-ai")
    sid = store.create_chat_session()
    await store.send_chat_message(sid, "hi")
    user_id = store.get_chat_session(sid).messages[0].id
    fake.routes[("GET", "/chat")] = env([ChatMessage(id=user_id, role="user", text="hi").wire(),
                                         ChatMessage(id="m-ai", role="assistant", text="hi there").wire()])
    session = await store.restore_chat_session(sid)
    assert [m.role for m in session.messages] == ["user", "assistant"]
    assert [m.id for m in session.messages] == [user_id, "m-ai"]


async def test_restore_against_live_backend_does_not_duplicate(mock_db):
    store = AppStore(transport=Transport("http://mock/api", transport=httpx.ASGITransport(app=app)))
    await store.send_chat_message("session-001", "show KPI performance")
    before = [m.id for m in store.get_chat_session("session-001").messages]
    session = await store.restore_chat_session("session-001")
    roles = [m.role for m in session.messages]
    assert roles[-2:] == ["user", "assistant"]
    assert len(session.messages) == len({m.id for m in session.messages})
    assert set(before) <= {m.id for m in session.messages}
