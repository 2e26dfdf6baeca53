# src/afterclasses/main.py
"""Main entry point for the AfterClasses application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from afterclasses.api.v1 import (
    auth_router,
    chat_router,
    match_router,
    placeholders_router,
    users_router,
)
from afterclasses.core.settings import settings
from afterclasses.db.session import check_connection, create_tables
from afterclasses.services.chat import ChatRelay
from afterclasses.services.notifier import NotificationDispatcher, build_sender
from afterclasses.services.presence import PresenceService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="AfterClasses API",
    description="Campus dating and social backend",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(match_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(placeholders_router, prefix="/api")

# Process-wide collaborators, injected into routes through dependencies.
app.state.notification_dispatcher = NotificationDispatcher(build_sender(settings))
app.state.chat_relay = ChatRelay(PresenceService())


@app.on_event("startup")
async def on_startup() -> None:
    if check_connection() and settings.auto_create_tables:
        create_tables()
    sender = app.state.notification_dispatcher.sender
    check = getattr(sender, "check", None)
    if check is not None and settings.smtp_host:
        check()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    dispatcher: NotificationDispatcher = app.state.notification_dispatcher
    await dispatcher.drain()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Campus dating and social backend",
        "docs": "/docs",
    }


def run() -> None:
    """Serve the application with uvicorn on the configured port."""
    import uvicorn

    logger.info("Server running on port %s", settings.port)
    uvicorn.run("afterclasses.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)


if __name__ == "__main__":
    run()
