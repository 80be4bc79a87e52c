from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from backend.dependencies import get_settings_state
from backend.settings import Settings

router = APIRouter()

ENDPOINTS = {
    "health": "GET /api/health",
    "users": {
        "list": "GET /api/v1/users",
        "create": "POST /api/v1/users",
        "get": "GET /api/v1/users/:id",
        "update": "PUT /api/v1/users/:id",
        "delete": "DELETE /api/v1/users/:id",
    },
    "chat": {
        "create": "POST /api/v1/chat",
        "getHistory": "GET /api/v1/chat/history/:threadId",
        "getThread": "GET /api/v1/chat/thread/:threadId",
        "createThread": "POST /api/v1/chat/thread",
        "deleteThread": "DELETE /api/v1/chat/thread/:threadId",
    },
    "openai": {
        "chat": "POST /api/openai/chat",
        "createThread": "POST /api/openai/thread",
        "getMessages": "GET /api/openai/thread/:threadId/messages",
        "addMessage": "POST /api/openai/thread/:threadId/message",
    },
}


def _now() -> str:
    """Current UTC time as ISO 8601."""
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health(settings: Settings = Depends(get_settings_state)) -> dict[str, str]:
    """Report process liveness."""
    return {"status": "OK", "environment": settings.APP_ENV, "timestamp": _now()}


@router.get("/api/health")
async def api_health(
    settings: Settings = Depends(get_settings_state),
) -> dict[str, Any]:
    """Report API readiness and version."""
    return {
        "success": True,
        "message": "API is healthy",
        "timestamp": _now(),
        "version": settings.APP_VERSION,
    }


@router.get("/api/docs")
async def api_docs() -> dict[str, Any]:
    """List the available endpoints."""
    return {"success": True, "message": "API Documentation", "endpoints": ENDPOINTS}
