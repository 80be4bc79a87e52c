from typing import Protocol

from backend.services.models import HistoryEntry


class HistoryBackend(Protocol):
    """Protocol describing async storage for local chat history."""

    async def get(self, thread_id: str) -> list[HistoryEntry] | None:
        """Retrieve all entries stored for ``thread_id``; None when unknown."""
        ...

    async def append(self, thread_id: str, entry: HistoryEntry) -> None:
        """Append ``entry`` to the existing history."""
        ...

    async def create(self, thread_id: str) -> None:
        """Initialise an empty history for ``thread_id``."""
        ...

    async def delete(self, thread_id: str) -> None:
        """Remove all stored entries for ``thread_id``."""
        ...
