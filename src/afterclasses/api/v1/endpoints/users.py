# src/afterclasses/api/v1/endpoints/users.py
"""Profile endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from afterclasses.api.v1.dependencies import SessionDep
from afterclasses.schemas.user import CreateProfileRequest, CreateProfileResponse, UserResponse
from afterclasses.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/create-profile", response_model=CreateProfileResponse)
async def create_profile(payload: CreateProfileRequest, db: SessionDep) -> CreateProfileResponse:
    """Create the profile for a verified email with the starting coin grant."""
    try:
        user = user_service.create_profile(db, payload)
    except SQLAlchemyError as err:
        logger.exception("Create profile failed for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error",
        ) from err
    return CreateProfileResponse(user=UserResponse.model_validate(user))
