"""Error models for the shared calendar service."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


ERROR_TYPES = ["authentication", "authorization", "validation", "persistence", "configuration"]


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_type: str = Field(..., description="Category of error")
    error_code: str = Field(..., description="Specific error code for programmatic handling")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    suggestions: Optional[List[str]] = Field(default=None, description="Suggested actions to resolve the error")

    @field_validator('error_type')
    @classmethod
    def validate_error_type(cls, v):
        """Ensure error type is one of the allowed categories."""
        if v not in ERROR_TYPES:
            raise ValueError(f"Error type must be one of: {', '.join(ERROR_TYPES)}")
        return v

    @field_validator('error_code')
    @classmethod
    def validate_error_code(cls, v):
        """Ensure error code is not empty."""
        if not v or not v.strip():
            raise ValueError("Error code cannot be empty")
        return v.strip().upper()

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        """Ensure message is not empty."""
        if not v or not v.strip():
            raise ValueError("Error message cannot be empty")
        return v.strip()


# Exception classes for raising errors
class CalendarException(Exception):
    """Base exception for the shared calendar service."""

    error_type = "validation"

    def __init__(self, error_code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AuthenticationException(CalendarException):
    """Wrong or absent admin password."""

    error_type = "authentication"


class AuthorizationException(CalendarException):
    """Missing, invalid or expired bearer token."""

    error_type = "authorization"

    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"

    @property
    def token_missing(self) -> bool:
        return self.error_code == self.MISSING_TOKEN


class ValidationException(CalendarException):
    """Exception for malformed documents, configurations or year keys."""

    error_type = "validation"


class PersistenceException(CalendarException):
    """Exception for durable storage failures."""

    error_type = "persistence"
