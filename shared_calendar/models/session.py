"""Admin session models."""

from pydantic import BaseModel, Field, field_validator


class AdminSession(BaseModel):
    """An issued admin bearer token and its lifetime."""

    token: str = Field(..., description="Opaque bearer token")
    issued_at: float = Field(..., description="Issue time on the store clock")
    expires_at: float = Field(..., description="Expiry time on the store clock")

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        """Ensure token is not empty."""
        if not v or not v.strip():
            raise ValueError("Token cannot be empty")
        return v

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
