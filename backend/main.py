import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.errors import ServiceError
from backend.logging_config import configure_logging
from backend.routers import assistant, chat, system, users
from backend.services.assistant_client import AssistantClient
from backend.services.chat_service import ChatService
from backend.services.history_store import HistoryStore
from backend.services.run_waiter import RunWaiter
from backend.services.user_store import UserStore
from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def _error_body(message: str, code: str) -> dict[str, object]:
    """Build the failure envelope shared by every error response."""
    return {"success": False, "error": message, "code": code}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map domain failures to their HTTP status and a readable reason."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code, content=_error_body(exc.message, exc.code)
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as 400 with per-field details."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning("Validation failed for %s %s: %s", request.method, request.url.path, details)
    body = _error_body("Validation failed", "validation_error")
    body["details"] = details
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (unknown routes, bad methods) in the API envelope."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message, "http_error"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer unexpected failures with a generic 500 instead of leaking details."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "internal_error"),
    )


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the API application.

    ``transport`` replaces the network transport of the assistant client;
    tests pass an ``httpx.MockTransport`` here.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the assistant client and app-owned stores, closing the client on exit."""
        client = AssistantClient(
            base_url=settings.OPENAI_BASE_URL,
            api_key=settings.OPENAI_API_KEY,
            assistant_id=settings.OPENAI_ASSISTANT_ID,
            timeout=settings.OPENAI_TIMEOUT,
            transport=transport,
        )
        waiter = RunWaiter(
            client,
            poll_interval=settings.RUN_POLL_INTERVAL,
            max_wait=settings.RUN_MAX_WAIT,
            fail_on_requires_action=settings.RUN_FAIL_ON_REQUIRES_ACTION,
        )
        app.state.chat = ChatService(client, waiter)
        app.state.history = HistoryStore()
        app.state.users = UserStore()
        logger.info(
            "API started (env=%s, assistant=%s)",
            settings.APP_ENV,
            settings.OPENAI_ASSISTANT_ID,
        )
        try:
            yield
        finally:
            await client.close()

    app = FastAPI(title="Assistant Chat Backend", version=settings.APP_VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(system.router)
    app.include_router(users.router)
    app.include_router(chat.router)
    app.include_router(assistant.router)
    return app


def main() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run("backend.main:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
