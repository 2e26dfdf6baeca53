"""Schemas for match suggestions and approaches."""

from pydantic import BaseModel, ConfigDict, Field

from .user import UserResponse


class SuggestionsResponse(BaseModel):
    """Candidate profiles for the requesting user."""

    users: list[UserResponse]


class ApproachRequest(BaseModel):
    """Spend coins to send an introductory line to another user."""

    from_user_id: int = Field(..., alias="fromUserId")
    to_user_id: int = Field(..., alias="toUserId")
    request_line: str | None = Field(None, alias="requestLine")

    model_config = ConfigDict(populate_by_name=True)


class ApproachResponse(BaseModel):
    """Acknowledgement of a recorded approach."""

    success: bool = True
