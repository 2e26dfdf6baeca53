"""Shared API dependencies for services owned by the application."""

from typing import Annotated

from fastapi import Depends, Request, WebSocket
from sqlalchemy.orm import Session

from afterclasses.db.session import get_db
from afterclasses.services.chat import ChatRelay
from afterclasses.services.otp import OtpService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_otp_service(request: Request) -> OtpService:
    """Build the OTP service around the process-wide notification dispatcher."""
    return OtpService(request.app.state.notification_dispatcher)


def get_chat_relay(websocket: WebSocket) -> ChatRelay:
    """Return the chat relay created once for this process."""
    relay: ChatRelay = websocket.app.state.chat_relay
    return relay


OtpServiceDep = Annotated[OtpService, Depends(get_otp_service)]
ChatRelayDep = Annotated[ChatRelay, Depends(get_chat_relay)]
