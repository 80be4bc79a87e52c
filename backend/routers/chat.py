import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, status

from backend.dependencies import get_chat_service, get_history
from backend.errors import NotFoundError
from backend.schemas import (
    ChatRequest,
    ThreadCreateRequest,
    ThreadIdPath,
    envelope,
    message_view,
)
from backend.services.chat_service import ChatService
from backend.services.models import HistoryEntry
from backend.services.store_protocol import HistoryBackend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.post("")
async def chat(
    chat_request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
    history: HistoryBackend = Depends(get_history),
) -> dict[str, Any]:
    """Run a conversation turn and record it in the local history."""
    logger.info(
        "Received chat request: thread=%s user=%s length=%d",
        chat_request.thread_id,
        chat_request.user_id,
        len(chat_request.message),
    )
    result = await chat_service.chat_with_assistant(
        chat_request.message, chat_request.thread_id
    )

    entry = HistoryEntry(
        user_message=chat_request.message,
        assistant_response=result.response,
        user_id=chat_request.user_id or "anonymous",
    )
    await history.append(result.thread_id, entry)

    return envelope(
        {
            "threadId": result.thread_id,
            "response": result.response,
            "runId": result.run_id,
            "timestamp": entry.timestamp.isoformat(),
        }
    )


@router.get("/history/{thread_id}")
async def get_history_for_thread(
    thread_id: ThreadIdPath, history: HistoryBackend = Depends(get_history)
) -> dict[str, Any]:
    """Return the locally recorded exchanges for a thread."""
    entries = await history.get(thread_id)
    if entries is None:
        raise NotFoundError("Chat history not found")
    return envelope(
        {
            "threadId": thread_id,
            "history": [e.model_dump(by_alias=True, mode="json") for e in entries],
        }
    )


@router.get("/thread/{thread_id}")
async def get_thread(
    thread_id: ThreadIdPath, chat_service: ChatService = Depends(get_chat_service)
) -> dict[str, Any]:
    """Return the assistant service's own transcript for a thread."""
    messages = await chat_service.list_thread_messages(thread_id)
    return envelope(
        {"threadId": thread_id, "messages": [message_view(m) for m in messages]}
    )


@router.post("/thread", status_code=status.HTTP_201_CREATED)
async def create_thread(
    body: ThreadCreateRequest | None = None,
    chat_service: ChatService = Depends(get_chat_service),
    history: HistoryBackend = Depends(get_history),
) -> dict[str, Any]:
    """Create an upstream thread and start its local history."""
    user_id = (body.user_id if body else None) or "anonymous"
    thread = await chat_service.client.create_thread()
    await history.create(thread.id)
    logger.info("Created new chat thread %s for user %s", thread.id, user_id)
    return envelope(
        {
            "threadId": thread.id,
            "userId": user_id,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
    )


@router.delete("/thread/{thread_id}")
async def delete_thread(
    thread_id: ThreadIdPath, history: HistoryBackend = Depends(get_history)
) -> dict[str, Any]:
    """Forget the local history of a thread; the upstream thread is kept."""
    await history.delete(thread_id)
    logger.info("Deleted chat thread %s", thread_id)
    return envelope({"threadId": thread_id, "message": "Thread deleted successfully"})
