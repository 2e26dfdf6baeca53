# src/afterclasses/api/v1/endpoints/auth.py
"""Email one-time code endpoints for the AfterClasses API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from afterclasses.api.v1.dependencies import OtpServiceDep, SessionDep
from afterclasses.core.settings import settings
from afterclasses.schemas.auth import (
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from afterclasses.schemas.user import UserResponse
from afterclasses.services.errors import OtpError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/send-otp",
    summary="Email a one-time login code",
    response_model=SendOtpResponse,
    response_model_exclude_none=True,
)
async def send_otp(
    payload: SendOtpRequest,
    db: SessionDep,
    otp_service: OtpServiceDep,
) -> SendOtpResponse:
    """Issue a code for ``email`` and schedule its delivery.

    The code is only echoed back when ``EXPOSE_OTP_IN_RESPONSE`` is enabled.
    """
    try:
        issued = otp_service.issue_code(db, payload.email)
    except ValidationError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except SQLAlchemyError as err:
        logger.exception("Send OTP failed for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal Server Error",
        ) from err

    return SendOtpResponse(
        message="OTP sent to your email! Please check your inbox.",
        is_new_user=issued.is_new_user,
        otp=issued.code if settings.expose_code_in_response else None,
    )


@router.post(
    "/verify-otp",
    summary="Verify a one-time login code",
    response_model=VerifyOtpResponse,
    response_model_exclude_none=True,
)
async def verify_otp(
    payload: VerifyOtpRequest,
    db: SessionDep,
    otp_service: OtpServiceDep,
) -> VerifyOtpResponse:
    """Consume the code and report whether the email already has a profile."""
    try:
        verification = otp_service.verify_code(db, payload.email, payload.otp)
    except (OtpError, ValidationError) as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except SQLAlchemyError as err:
        logger.exception("Verify OTP failed for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Verification failed",
        ) from err

    user = (
        UserResponse.model_validate(verification.user)
        if verification.user is not None
        else None
    )
    return VerifyOtpResponse(is_new_user=verification.is_new_user, user=user)
