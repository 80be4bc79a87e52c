import logging
from typing import Any

from fastapi import APIRouter, Depends

from backend.dependencies import get_chat_service
from backend.schemas import (
    ChatRequest,
    MessageCreateRequest,
    ThreadIdPath,
    envelope,
    message_view,
)
from backend.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/openai", tags=["openai"])


@router.post("/chat")
async def chat(
    chat_request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)
) -> dict[str, Any]:
    """Run a conversation turn without recording local history."""
    logger.info(
        "Received direct chat request: thread=%s length=%d",
        chat_request.thread_id,
        len(chat_request.message),
    )
    result = await chat_service.chat_with_assistant(
        chat_request.message, chat_request.thread_id
    )
    return envelope(
        {"threadId": result.thread_id, "response": result.response, "runId": result.run_id}
    )


@router.post("/thread")
async def create_thread(
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Create an empty upstream thread."""
    thread = await chat_service.client.create_thread()
    return envelope({"threadId": thread.id})


@router.get("/thread/{thread_id}/messages")
async def get_messages(
    thread_id: ThreadIdPath, chat_service: ChatService = Depends(get_chat_service)
) -> dict[str, Any]:
    """Return the assistant service transcript for a thread."""
    messages = await chat_service.list_thread_messages(thread_id)
    return envelope(
        {"threadId": thread_id, "messages": [message_view(m) for m in messages]}
    )


@router.post("/thread/{thread_id}/message")
async def add_message(
    thread_id: ThreadIdPath,
    body: MessageCreateRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Append a message to a thread without starting a run."""
    message = await chat_service.client.add_message(thread_id, body.content, body.role)
    return envelope(
        {
            "messageId": message.id,
            "threadId": thread_id,
            "role": message.role,
            "content": message.text or "",
        }
    )
