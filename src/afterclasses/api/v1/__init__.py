# src/afterclasses/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    chat_router,
    match_router,
    placeholders_router,
    users_router,
)

__all__ = [
    "auth_router",
    "chat_router",
    "match_router",
    "placeholders_router",
    "users_router",
]
