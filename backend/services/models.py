from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant"]

# Upstream thread/run ids are opaque but URL-safe, e.g. ``thread_abc123``.
ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"

RunStatus = Literal[
    "queued",
    "in_progress",
    "requires_action",
    "cancelling",
    "cancelled",
    "failed",
    "completed",
    "incomplete",
    "expired",
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Thread(BaseModel):
    """Conversation thread owned by the assistant service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime


class TextContent(BaseModel):
    """A text part of a message."""

    type: Literal["text"] = "text"
    value: str


class OtherContent(BaseModel):
    """Any non-text part (images, refusals, ...). Kept only by type."""

    type: str


MessageContent = Annotated[TextContent | OtherContent, Field(union_mode="left_to_right")]


class Message(BaseModel):
    """A single message in an upstream thread."""

    model_config = ConfigDict(extra="ignore")

    id: str
    thread_id: str
    role: Role
    content: list[MessageContent] = Field(default_factory=list)
    created_at: datetime

    @field_validator("content", mode="before")
    @classmethod
    def _flatten_content(cls, parts: Any) -> Any:
        """Turn upstream ``{"type": "text", "text": {"value": ...}}`` parts into variants."""
        if not isinstance(parts, list):
            return parts
        flattened: list[dict[str, Any]] = []
        for part in parts:
            if isinstance(part, dict) and part.get("type") == "text":
                text = part.get("text") or {}
                value = text.get("value") if isinstance(text, dict) else text
                if isinstance(value, str):
                    flattened.append({"type": "text", "value": value})
                    continue
            part_type = part.get("type", "unknown") if isinstance(part, dict) else "unknown"
            flattened.append({"type": part_type if part_type != "text" else "unknown"})
        return flattened

    @property
    def text(self) -> str | None:
        """Return the first text part, or None when the message has no text."""
        for part in self.content:
            if isinstance(part, TextContent):
                return part.value
        return None


class RunError(BaseModel):
    """Diagnostic the assistant service attaches to a failed run."""

    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    message: str | None = None


class Run(BaseModel):
    """One invocation of the assistant against a thread."""

    model_config = ConfigDict(extra="ignore")

    id: str
    thread_id: str
    status: RunStatus | str
    last_error: RunError | None = None


class HistoryEntry(BaseModel):
    """A locally recorded user/assistant exchange."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    user_message: str
    assistant_response: str
    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str = "anonymous"
