"""Pydantic models for the shared calendar HTTP API."""

from typing import List
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = Field(..., description="Server health status")
    version: str = Field(..., description="Server version")
    uptime: float = Field(..., description="Server uptime in seconds")
    active_sessions: int = Field(..., description="Number of live admin sessions")
    open_connections: int = Field(..., description="Number of open realtime connections")
    sweep_running: bool = Field(..., description="Whether the liveness sweep is running")
    stored_years: List[int] = Field(default_factory=list, description="Years with a stored document")
