from typing import Annotated, Any, Literal

from fastapi import Path
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from backend.services.models import ID_PATTERN, Message

MAX_MESSAGE_LENGTH = 4000

ThreadId = Annotated[str, Field(pattern=ID_PATTERN)]
ThreadIdPath = Annotated[str, Path(pattern=ID_PATTERN, description="Assistant thread id")]


class _CamelModel(BaseModel):
    """Request body accepting camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    """A conversation turn: the user's text and an optional existing thread."""

    message: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)
    thread_id: ThreadId | None = None
    user_id: str | None = None


class ThreadCreateRequest(_CamelModel):
    """Optional owner of an explicitly created thread."""

    user_id: str | None = None


class MessageCreateRequest(_CamelModel):
    """A message appended to a thread without starting a run."""

    content: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)
    role: Literal["user", "assistant"] = "user"


class UserCreateRequest(_CamelModel):
    """Fields for a new user."""

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr


class UserUpdateRequest(_CamelModel):
    """Fields to change on a user; omitted ones are kept."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None


def envelope(data: Any) -> dict[str, Any]:
    """Wrap a payload in the API's success envelope."""
    return {"success": True, "data": data}


def message_view(message: Message) -> dict[str, Any]:
    """Render an upstream message for API responses."""
    return {
        "id": message.id,
        "role": message.role,
        "content": message.text or "",
        "createdAt": message.created_at.isoformat(),
    }
