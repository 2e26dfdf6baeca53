# src/afterclasses/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .chat import router as chat_router
from .match import router as match_router
from .placeholders import router as placeholders_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "chat_router",
    "match_router",
    "placeholders_router",
    "users_router",
]
