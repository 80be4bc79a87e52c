import asyncio

from backend.services.models import HistoryEntry


class HistoryStore:
    """Thread-safe in-memory chat history, keyed by assistant thread id."""

    def __init__(self) -> None:
        """Initialise the store and its async lock."""
        self._data: dict[str, list[HistoryEntry]] = {}
        self._lock = asyncio.Lock()

    async def get(self, thread_id: str) -> list[HistoryEntry] | None:
        """Return a copy of the thread's history, or None if it was never populated."""
        async with self._lock:
            entries = self._data.get(thread_id)
            return None if entries is None else list(entries)

    async def append(self, thread_id: str, entry: HistoryEntry) -> None:
        """Append an exchange to the end of the history for the thread."""
        async with self._lock:
            self._data.setdefault(thread_id, []).append(entry)

    async def create(self, thread_id: str) -> None:
        """Start an empty history for the thread unless one exists."""
        async with self._lock:
            self._data.setdefault(thread_id, [])

    async def delete(self, thread_id: str) -> None:
        """Remove the stored history for the thread if it exists."""
        async with self._lock:
            self._data.pop(thread_id, None)
