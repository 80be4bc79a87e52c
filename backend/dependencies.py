from fastapi import Request

from backend.services.chat_service import ChatService
from backend.services.store_protocol import HistoryBackend
from backend.services.user_store import UserStore
from backend.settings import Settings


def get_settings_state(request: Request) -> Settings:
    """Return the settings the running app was built with."""
    return request.app.state.settings


def get_chat_service(request: Request) -> ChatService:
    """Return the app-wide chat orchestrator."""
    return request.app.state.chat


def get_history(request: Request) -> HistoryBackend:
    """Return the app-owned chat history store."""
    return request.app.state.history


def get_users(request: Request) -> UserStore:
    """Return the app-owned user store."""
    return request.app.state.users
