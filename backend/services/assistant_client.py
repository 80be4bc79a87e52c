import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError as ModelValidationError

from backend.errors import UpstreamError, ValidationError
from backend.services.models import ID_PATTERN, Message, Role, Run, Thread

logger = logging.getLogger(__name__)

_ID_RE = re.compile(ID_PATTERN)


class AssistantClient:
    """Async client for the OpenAI Assistants REST API.

    Each method maps to exactly one upstream call. Failures of any kind are
    raised as :class:`UpstreamError`; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        assistant_id: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client and create an underlying HTTPX session."""
        if not api_key or not assistant_id:
            raise ValueError("API key and assistant ID are required.")
        self.base_url = base_url
        self.api_key = api_key
        self.assistant_id = assistant_id
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=timeout,
            http2=True,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        """Create HTTP headers for Assistants API requests."""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": "assistants=v2",
        }

    async def close(self) -> None:
        """Close the underlying HTTPX client."""
        await self._client.aclose()

    @staticmethod
    def _upstream_message(response: httpx.Response) -> str:
        """Pull ``error.message`` out of an upstream error body if there is one."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return f"Assistant service returned HTTP {response.status_code}"

    async def _request(
        self, method: str, path: str, action: str, json: dict[str, Any] | None = None
    ) -> Any:
        """Send one request and return the decoded JSON body."""
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            logger.error("Failed to %s: %s", action, exc)
            raise UpstreamError(f"Failed to {action}: {exc}") from exc

        if response.is_error:
            message = self._upstream_message(response)
            logger.error(
                "Failed to %s: HTTP %s %s", action, response.status_code, message
            )
            raise UpstreamError(
                f"Failed to {action}: {message}", upstream_status=response.status_code
            )

        try:
            return response.json()
        except ValueError as exc:
            logger.error("Failed to %s: invalid JSON response", action)
            raise UpstreamError(f"Failed to {action}: invalid JSON response") from exc

    @staticmethod
    def _checked_id(value: str, kind: str) -> str:
        """Reject ids that would change the upstream path."""
        if not isinstance(value, str) or not _ID_RE.fullmatch(value):
            raise ValidationError(f"Invalid {kind} identifier")
        return value

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, action: str) -> Any:
        """Validate an upstream body into ``model``."""
        try:
            return model.model_validate(data)
        except ModelValidationError as exc:
            logger.error("Failed to %s: unexpected response shape: %s", action, exc)
            raise UpstreamError(f"Failed to {action}: unexpected response shape") from exc

    async def create_thread(self) -> Thread:
        """Create a new, empty conversation thread."""
        action = "create thread"
        data = await self._request("POST", "threads", action, json={})
        thread = self._parse(Thread, data, action)
        logger.info("Created assistant thread %s", thread.id)
        return thread

    async def add_message(
        self, thread_id: str, content: str, role: Role = "user"
    ) -> Message:
        """Append a message to an existing thread."""
        action = "add message to thread"
        data = await self._request(
            "POST",
            f"threads/{self._checked_id(thread_id, 'thread')}/messages",
            action,
            json={"role": role, "content": content},
        )
        message = self._parse(Message, data, action)
        logger.info("Added %s message %s to thread %s", role, message.id, thread_id)
        return message

    async def run_assistant(self, thread_id: str) -> Run:
        """Start a run of the configured assistant on the thread."""
        action = "run assistant"
        data = await self._request(
            "POST",
            f"threads/{self._checked_id(thread_id, 'thread')}/runs",
            action,
            json={"assistant_id": self.assistant_id},
        )
        run = self._parse(Run, data, action)
        logger.info("Started assistant run %s on thread %s", run.id, thread_id)
        return run

    async def get_run_status(self, thread_id: str, run_id: str) -> Run:
        """Fetch the current state of a run."""
        action = "get run status"
        path = (
            f"threads/{self._checked_id(thread_id, 'thread')}"
            f"/runs/{self._checked_id(run_id, 'run')}"
        )
        data = await self._request("GET", path, action)
        run = self._parse(Run, data, action)
        logger.debug("Run %s on thread %s is %s", run_id, thread_id, run.status)
        return run

    async def get_messages(self, thread_id: str) -> list[Message]:
        """List thread messages in upstream order (most recent first)."""
        action = "get messages"
        data = await self._request(
            "GET", f"threads/{self._checked_id(thread_id, 'thread')}/messages", action
        )
        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.error("Failed to %s: unexpected response shape", action)
            raise UpstreamError(f"Failed to {action}: unexpected response shape")
        return [self._parse(Message, item, action) for item in items]
