"""Request and response models for the shared calendar gateway."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Request model for admin login."""

    password: str = Field("", description="Admin passphrase")


class LoginResponse(BaseModel):
    """Response model for admin login."""

    role: str = Field(..., description="'admin' on success, 'view' on failure")
    token: Optional[str] = Field(None, description="Bearer token, only issued on success")


class DataUpdatePayload(BaseModel):
    """Payload of a DATA_UPDATE broadcast."""

    year: int = Field(..., description="Calendar year that changed")
    data: Dict[str, Any] = Field(..., description="Full new document")


class SaveResponse(BaseModel):
    """Response model for a successful save."""

    status: str = Field("success", description="Operation status")
    message: str = Field(..., description="Human-readable message")
    delivered: int = Field(0, description="Realtime connections the change was pushed to")
