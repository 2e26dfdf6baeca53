"""Schemas for the email one-time code login flow."""

from pydantic import BaseModel, ConfigDict, Field

from .user import UserResponse


class SendOtpRequest(BaseModel):
    """Request a login code for an email address."""

    email: str | None = Field("", description="Email address that should receive the code")


class SendOtpResponse(BaseModel):
    """Acknowledgement that a code was issued."""

    success: bool = True
    message: str = Field(..., description="Human readable status")
    is_new_user: bool = Field(..., alias="isNewUser")
    otp: str | None = Field(
        None,
        description="Issued code; only present when the deployment exposes it",
    )

    model_config = ConfigDict(populate_by_name=True)


class VerifyOtpRequest(BaseModel):
    """Submit a code previously sent to ``email``."""

    email: str | None = Field(None, description="Email address the code was issued for")
    otp: str | None = Field(None, description="Code exactly as received")


class VerifyOtpResponse(BaseModel):
    """Outcome of a successful verification."""

    success: bool = True
    is_new_user: bool = Field(..., alias="isNewUser")
    user: UserResponse | None = None

    model_config = ConfigDict(populate_by_name=True)
