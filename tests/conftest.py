import itertools
import json
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from backend.main import create_app
from backend.services.assistant_client import AssistantClient
from backend.settings import Settings

CREATED_AT = 1_700_000_000


class FakeAssistantAPI:
    """In-process stand-in for the Assistants REST API, served through httpx.MockTransport.

    ``run_statuses`` is replayed one entry per status check; the last entry
    repeats. When a run is first seen ``completed`` the assistant reply is
    appended to the thread, unless ``reply`` is None.
    """

    def __init__(self) -> None:
        self.threads: dict[str, list[dict[str, Any]]] = {}
        self.runs: dict[str, dict[str, Any]] = {}
        self.run_statuses: list[str] = ["queued", "in_progress", "completed"]
        self.run_error: dict[str, Any] | None = None
        self.reply: str | None = "Hello! How can I help you today?"
        self.errors: dict[tuple[str, str], tuple[int, str]] = {}
        self.requests: list[httpx.Request] = []
        self.threads_created = 0
        self.status_checks = 0
        self._ids = itertools.count(1)
        self._status_index: dict[str, int] = {}

    def add_thread(self, thread_id: str) -> None:
        self.threads.setdefault(thread_id, [])

    def add_message(self, thread_id: str, role: str, text: str) -> dict[str, Any]:
        message = {
            "id": f"msg_{next(self._ids)}",
            "object": "thread.message",
            "thread_id": thread_id,
            "role": role,
            "content": [{"type": "text", "text": {"value": text, "annotations": []}}],
            "created_at": CREATED_AT,
        }
        self.threads[thread_id].append(message)
        return message

    def fail(self, method: str, kind: str, status_code: int, message: str) -> None:
        """Make every ``method`` call on ``kind`` (threads/messages/runs/run) fail."""
        self.errors[(method, kind)] = (status_code, message)

    @staticmethod
    def _error(status_code: int, message: str) -> httpx.Response:
        return httpx.Response(status_code, json={"error": {"message": message, "type": "invalid_request_error"}})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.removeprefix("/v1/").split("/")
        method = request.method

        if parts == ["threads"]:
            kind = "threads"
        elif len(parts) == 3 and parts[2] == "messages":
            kind = "messages"
        elif len(parts) == 3 and parts[2] == "runs":
            kind = "runs"
        elif len(parts) == 4 and parts[2] == "runs":
            kind = "run"
        else:
            return self._error(404, "Unknown route")

        if (method, kind) in self.errors:
            return self._error(*self.errors[(method, kind)])

        if kind == "threads" and method == "POST":
            thread_id = f"thread_{next(self._ids)}"
            self.add_thread(thread_id)
            self.threads_created += 1
            return httpx.Response(200, json={"id": thread_id, "object": "thread", "created_at": CREATED_AT})

        thread_id = parts[1]
        if thread_id not in self.threads:
            return self._error(404, f"No thread found with id '{thread_id}'.")

        if kind == "messages" and method == "POST":
            body = json.loads(request.content)
            return httpx.Response(200, json=self.add_message(thread_id, body["role"], body["content"]))

        if kind == "messages" and method == "GET":
            data = list(reversed(self.threads[thread_id]))
            return httpx.Response(200, json={"object": "list", "data": data})

        if kind == "runs" and method == "POST":
            run_id = f"run_{next(self._ids)}"
            run = {"id": run_id, "object": "thread.run", "thread_id": thread_id, "status": "queued", "last_error": None}
            self.runs[run_id] = run
            self._status_index[run_id] = 0
            return httpx.Response(200, json=run)

        if kind == "run" and method == "GET":
            return self._check_run(thread_id, parts[3])

        return self._error(405, "Method not allowed")

    def _check_run(self, thread_id: str, run_id: str) -> httpx.Response:
        run = self.runs.get(run_id)
        if run is None:
            return self._error(404, f"No run found with id '{run_id}'.")
        self.status_checks += 1
        index = self._status_index[run_id]
        status = self.run_statuses[min(index, len(self.run_statuses) - 1)]
        self._status_index[run_id] = index + 1

        if status == "completed" and run["status"] != "completed" and self.reply is not None:
            self.add_message(thread_id, "assistant", self.reply)
        run["status"] = status
        run["last_error"] = self.run_error if status == "failed" else None
        return httpx.Response(200, json=run)


@pytest.fixture
def fake_api() -> FakeAssistantAPI:
    return FakeAssistantAPI()


@pytest_asyncio.fixture
async def assistant_client(fake_api: FakeAssistantAPI):
    client = AssistantClient(
        base_url="https://api.openai.com/v1/",
        api_key="sk-test",
        assistant_id="asst_test",
        transport=httpx.MockTransport(fake_api.handler),
    )
    yield client
    await client.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        OPENAI_API_KEY="sk-test",
        OPENAI_ASSISTANT_ID="asst_test",
        RUN_POLL_INTERVAL=0.0,
        RUN_MAX_WAIT=1.0,
        APP_ENV="testing",
        _env_file=None,
    )


@pytest.fixture
def client(settings: Settings, fake_api: FakeAssistantAPI):
    """Provides a test client whose assistant calls go to ``fake_api``."""
    app = create_app(settings, transport=httpx.MockTransport(fake_api.handler))
    with TestClient(app) as test_client:
        yield test_client
