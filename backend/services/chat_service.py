import logging
from dataclasses import dataclass

from backend.errors import ValidationError
from backend.services.assistant_client import AssistantClient
from backend.services.models import Message
from backend.services.run_waiter import RunWaiter

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response from assistant"


@dataclass(frozen=True)
class ChatResult:
    """Outcome of a conversation turn."""

    thread_id: str
    response: str
    run_id: str


class ChatService:
    """Run one conversation turn against the assistant."""

    def __init__(self, client: AssistantClient, waiter: RunWaiter) -> None:
        """Use ``client`` for upstream calls and ``waiter`` to wait for runs."""
        self.client = client
        self.waiter = waiter

    @staticmethod
    def _latest_assistant_reply(messages: list[Message]) -> str:
        """Return the newest assistant text, or the no-response sentinel."""
        for message in messages:
            if message.role == "assistant":
                return message.text or NO_RESPONSE
        return NO_RESPONSE

    async def chat_with_assistant(
        self, message: str, thread_id: str | None = None
    ) -> ChatResult:
        """Send ``message`` and wait for the assistant's reply.

        A new thread is created when ``thread_id`` is not given. Run failures
        and timeouts propagate to the caller unchanged.
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")

        current_thread_id = thread_id
        if not current_thread_id:
            thread = await self.client.create_thread()
            current_thread_id = thread.id

        await self.client.add_message(current_thread_id, message)
        run = await self.client.run_assistant(current_thread_id)
        await self.waiter.wait_for_completion(current_thread_id, run.id)

        messages = await self.client.get_messages(current_thread_id)
        response = self._latest_assistant_reply(messages)
        if response == NO_RESPONSE:
            logger.warning("Run %s finished without an assistant text reply", run.id)

        return ChatResult(thread_id=current_thread_id, response=response, run_id=run.id)

    async def list_thread_messages(self, thread_id: str) -> list[Message]:
        """Return the upstream transcript of a thread."""
        return await self.client.get_messages(thread_id)
