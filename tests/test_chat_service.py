import asyncio
import time

import pytest

from backend.errors import RunFailedError, UpstreamError, ValidationError
from backend.services.chat_service import NO_RESPONSE, ChatService
from backend.services.run_waiter import RunWaiter


async def _no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def chat_service(assistant_client) -> ChatService:
    waiter = RunWaiter(assistant_client, poll_interval=0.0, max_wait=5.0, sleep=_no_sleep)
    return ChatService(assistant_client, waiter)


@pytest.mark.asyncio
async def test_creates_exactly_one_thread_when_none_given(chat_service, fake_api):
    result = await chat_service.chat_with_assistant("Hello")

    assert fake_api.threads_created == 1
    assert result.thread_id in fake_api.threads
    assert result.response == "Hello! How can I help you today?"
    assert result.run_id in fake_api.runs


@pytest.mark.asyncio
async def test_reuses_existing_thread(chat_service, fake_api):
    fake_api.add_thread("thread_existing")

    result = await chat_service.chat_with_assistant("Hello again", thread_id="thread_existing")

    assert fake_api.threads_created == 0
    assert result.thread_id == "thread_existing"
    roles = [m["role"] for m in fake_api.threads["thread_existing"]]
    assert roles == ["user", "assistant"]


@pytest.mark.asyncio
async def test_returns_sentinel_when_only_user_messages(chat_service, fake_api):
    fake_api.reply = None

    result = await chat_service.chat_with_assistant("Hello")

    assert result.response == NO_RESPONSE == "No response from assistant"


@pytest.mark.asyncio
async def test_picks_most_recent_assistant_message(chat_service, fake_api):
    fake_api.add_thread("thread_old")
    fake_api.add_message("thread_old", "user", "first question")
    fake_api.add_message("thread_old", "assistant", "first answer")
    fake_api.reply = "second answer"

    result = await chat_service.chat_with_assistant("second question", thread_id="thread_old")

    assert result.response == "second answer"


@pytest.mark.asyncio
async def test_rejects_blank_message_without_calling_upstream(chat_service, fake_api):
    with pytest.raises(ValidationError):
        await chat_service.chat_with_assistant("   ")

    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_run_failure_propagates(chat_service, fake_api):
    fake_api.run_statuses = ["failed"]
    fake_api.run_error = {"code": "rate_limit_exceeded", "message": "rate_limited"}

    with pytest.raises(RunFailedError) as excinfo:
        await chat_service.chat_with_assistant("Hello")

    assert "rate_limited" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unknown_thread_is_an_upstream_error(chat_service, fake_api):
    with pytest.raises(UpstreamError) as excinfo:
        await chat_service.chat_with_assistant("Hello", thread_id="thread_missing")

    assert "No thread found" in str(excinfo.value)
    assert fake_api.threads_created == 0


@pytest.mark.asyncio
async def test_list_thread_messages_keeps_upstream_order(chat_service, fake_api):
    fake_api.add_thread("thread_t")
    fake_api.add_message("thread_t", "user", "one")
    fake_api.add_message("thread_t", "assistant", "two")

    messages = await chat_service.list_thread_messages("thread_t")

    assert [m.text for m in messages] == ["two", "one"]


@pytest.mark.asyncio
async def test_concurrent_turns_wait_in_parallel(assistant_client, fake_api):
    fake_api.run_statuses = ["queued", "completed"]
    waiter = RunWaiter(assistant_client, poll_interval=0.2, max_wait=5.0)
    service = ChatService(assistant_client, waiter)

    started = time.monotonic()
    results = await asyncio.gather(*(service.chat_with_assistant("Hello") for _ in range(5)))
    elapsed = time.monotonic() - started

    assert len({r.thread_id for r in results}) == 5
    assert all(r.response == "Hello! How can I help you today?" for r in results)
    # Each run sleeps once; serialised waits would take about a second.
    assert 0.2 <= elapsed < 0.6
