import asyncio

import pytest

from backend.services.history_store import HistoryStore
from backend.services.models import HistoryEntry


def entry(text: str, user_id: str = "anonymous") -> HistoryEntry:
    return HistoryEntry(user_message=text, assistant_response=f"re: {text}", user_id=user_id)


@pytest.mark.asyncio
async def test_unknown_thread_is_not_found():
    store = HistoryStore()
    assert await store.get("thread_never") is None


@pytest.mark.asyncio
async def test_append_then_get_returns_single_entry():
    store = HistoryStore()
    first = entry("hi")

    await store.append("thread_1", first)

    assert await store.get("thread_1") == [first]


@pytest.mark.asyncio
async def test_created_thread_is_empty_not_missing():
    store = HistoryStore()
    await store.create("thread_1")
    assert await store.get("thread_1") == []

    await store.append("thread_1", entry("hi"))
    await store.create("thread_1")
    assert len(await store.get("thread_1")) == 1


@pytest.mark.asyncio
async def test_delete_is_idempotent():
    store = HistoryStore()
    await store.append("thread_1", entry("hi"))

    await store.delete("thread_1")
    await store.delete("thread_1")
    await store.delete("thread_never")

    assert await store.get("thread_1") is None


@pytest.mark.asyncio
async def test_get_returns_a_copy():
    store = HistoryStore()
    await store.append("thread_1", entry("hi"))

    snapshot = await store.get("thread_1")
    snapshot.append(entry("sneaky"))

    assert len(await store.get("thread_1")) == 1


@pytest.mark.asyncio
async def test_concurrent_appends_keep_every_entry():
    store = HistoryStore()
    entries = [entry(f"m{i}") for i in range(50)]

    await asyncio.gather(*(store.append("thread_1", e) for e in entries))

    stored = await store.get("thread_1")
    assert len(stored) == 50
    assert set(stored) == set(entries)


def test_entry_serialises_camel_case():
    data = entry("hi", user_id="u1").model_dump(by_alias=True, mode="json")
    assert set(data) == {"userMessage", "assistantResponse", "timestamp", "userId"}
    assert data["userId"] == "u1"
