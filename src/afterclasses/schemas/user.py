"""Profile-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateProfileRequest(BaseModel):
    """Profile details submitted after a successful OTP verification."""

    email: str = Field(..., min_length=1, description="Verified email address")
    name: str | None = Field(None, description="Display name")
    gender: str | None = Field(None, description="Self-described gender")
    pitch_line: str | None = Field(None, alias="pitchLine", description="One-line introduction")
    personality: list[str] | None = Field(None, description="Personality tags")
    toxic_traits: list[str] | None = Field(None, alias="toxicTraits", description="Self-declared toxic traits")
    interests: list[str] | None = Field(None, description="Interest tags")
    avatar: str | None = Field(None, description="Avatar identifier or URL")

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    """Stored profile as returned to clients."""

    id: int
    email: str
    name: str | None
    gender: str | None
    pitch_line: str | None
    personality: list[str]
    toxic_traits: list[str]
    interests: list[str]
    avatar: str | None
    coins: int
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class CreateProfileResponse(BaseModel):
    """Response returned once a profile row is created."""

    success: bool = True
    user: UserResponse
