import asyncio

import pytest
from pydantic import ValidationError

from nexus_builder.models import GameState, Size
from nexus_builder.resolver import Message, SessionContext, SessionStore


def _exchange(index: int) -> tuple[Message, Message]:
    return Message("user", f"question {index}"), Message("assistant", f"answer {index}")


def test_messages_are_trimmed_fifo() -> None:
    store = SessionStore(max_messages=4)
    for index in range(3):
        store.commit("s1", context=SessionContext(), messages=_exchange(index))

    history = store.history("s1")

    assert [message.content for message in history] == ["question 1", "answer 1", "question 2", "answer 2"]


def test_least_recently_updated_session_is_evicted() -> None:
    store = SessionStore(max_sessions=2)
    store.commit("a", context=SessionContext())
    store.commit("b", context=SessionContext())
    store.commit("a", context=SessionContext(), messages=_exchange(0))
    store.get_or_create("c")

    assert "a" in store
    assert "b" not in store
    assert "c" in store
    assert len(store) == 2


def test_clear_and_unknown_history() -> None:
    store = SessionStore()
    store.commit("gone", context=SessionContext(), messages=_exchange(0))

    assert store.clear("gone") is True
    assert store.clear("gone") is False
    assert store.history("gone") == []


def test_user_id_is_recorded_once() -> None:
    store = SessionStore()
    store.commit("s1", context=SessionContext(), user_id="neo")
    session = store.commit("s1", context=SessionContext(), user_id="smith")

    assert session.user_id == "neo"


def test_context_merge_keeps_fields_not_supplied() -> None:
    base = SessionContext(recent_commands=["Help"], world_snapshot=GameState())
    update = SessionContext(world_snapshot=GameState(world_size=Size(10, 10)))

    merged = base.merged(update)

    assert merged.recent_commands == ["Help"]
    assert merged.world_snapshot is update.world_snapshot
    assert base.merged(None).recent_commands == ["Help"]


def test_lock_is_shared_per_session() -> None:
    store = SessionStore()

    assert store.lock_for("s1") is store.lock_for("s1")
    assert store.lock_for("s1") is not store.lock_for("s2")


def test_new_session_ids_are_unique() -> None:
    assert SessionStore.new_session_id() != SessionStore.new_session_id()
    assert SessionStore.new_session_id().startswith("session_")


def test_store_rejects_zero_session_capacity() -> None:
    with pytest.raises(ValueError):
        SessionStore(max_sessions=0)
    with pytest.raises(ValueError):
        SessionStore(max_messages=-1)

    store = SessionStore(max_sessions=1)
    store.commit("a", context=SessionContext())
    store.commit("b", context=SessionContext())

    assert "a" not in store
    assert "b" in store


def test_settings_reject_zero_session_capacity() -> None:
    from nexus_builder.config import Settings

    with pytest.raises(ValidationError):
        Settings(max_sessions=0)


def test_lock_is_dropped_when_session_is_evicted_while_held() -> None:
    store = SessionStore(max_sessions=1)

    async def _run() -> None:
        async with store.hold("a"):
            store.commit("a", context=SessionContext())
            store.commit("b", context=SessionContext())
            assert store.has_lock("a")

    asyncio.run(_run())

    assert "a" not in store
    assert not store.has_lock("a")


def test_lock_survives_release_while_session_exists() -> None:
    store = SessionStore()

    async def _run() -> None:
        async with store.hold("s1"):
            store.commit("s1", context=SessionContext())

    asyncio.run(_run())

    assert store.has_lock("s1")
    assert store.clear("s1") is True
    assert not store.has_lock("s1")


def test_waiting_holder_keeps_lock_after_eviction() -> None:
    store = SessionStore(max_sessions=1)
    order: list[str] = []

    async def _first() -> None:
        async with store.hold("a"):
            store.commit("a", context=SessionContext())
            await asyncio.sleep(0.01)
            store.commit("b", context=SessionContext())
            order.append("first")

    async def _second() -> None:
        await asyncio.sleep(0)
        async with store.hold("a"):
            order.append("second")
            assert store.has_lock("a")

    async def _run() -> None:
        await asyncio.gather(_first(), _second())

    asyncio.run(_run())

    assert order == ["first", "second"]
    assert not store.has_lock("a")
