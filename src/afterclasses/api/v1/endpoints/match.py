# src/afterclasses/api/v1/endpoints/match.py
"""Match suggestion and approach endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from afterclasses.api.v1.dependencies import SessionDep
from afterclasses.schemas.match import ApproachRequest, ApproachResponse, SuggestionsResponse
from afterclasses.schemas.user import UserResponse
from afterclasses.services import matching
from afterclasses.services.errors import InsufficientBalanceError, UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/match", tags=["match"])


@router.get("/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    db: SessionDep,
    user_id: int | None = Query(None, alias="userId"),
    gender: str | None = Query(None),
) -> SuggestionsResponse:
    """Return up to twenty of the newest profiles, excluding the caller."""
    try:
        users = matching.suggestions(db, user_id, gender)
    except SQLAlchemyError as err:
        logger.exception("Fetching suggestions failed for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch matches",
        ) from err
    return SuggestionsResponse(users=[UserResponse.model_validate(user) for user in users])


@router.post("/approach", response_model=ApproachResponse)
async def approach(payload: ApproachRequest, db: SessionDep) -> ApproachResponse:
    """Spend coins to send an introductory request line."""
    try:
        matching.approach(db, payload.from_user_id, payload.to_user_id, payload.request_line)
    except (InsufficientBalanceError, UserNotFoundError) as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except SQLAlchemyError as err:
        logger.exception(
            "Approach from %s to %s failed", payload.from_user_id, payload.to_user_id
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Approach failed",
        ) from err
    return ApproachResponse()
