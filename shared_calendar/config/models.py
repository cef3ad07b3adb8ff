"""Configuration models for the shared calendar service."""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


HEADER_STYLES = {"simple", "possessive", "question"}


class DisplayDefaults(BaseModel):
    """Presentation defaults served until an admin stores a configuration record."""

    header_name: Optional[str] = Field(None, description="Page header name")
    timezone: str = Field("UTC", description="IANA timezone used to pick the current month")
    banner_html: Optional[str] = Field(None, description="Optional HTML banner shown above the calendar")
    header_style: str = Field("simple", description="Header style: 'simple', 'possessive' or 'question'")
    owner_name: str = Field("", description="Owner name used by the possessive and question header styles")

    @field_validator('header_style')
    @classmethod
    def validate_header_style(cls, v):
        """Validate that header style is one of the supported options."""
        if v not in HEADER_STYLES:
            raise ValueError(f"Header style must be one of: {', '.join(sorted(HEADER_STYLES))}")
        return v


class ServiceConfig(BaseModel):
    """Main configuration container for the shared calendar service."""

    admin_password: str = Field(..., description="Shared admin passphrase")
    host: str = Field("0.0.0.0", description="Listen address")
    port: int = Field(80, description="Listen port", ge=1, le=65535)
    data_dir: str = Field("./data", description="Directory holding the persisted records")
    session_ttl: int = Field(
        8 * 60 * 60,  # 8 hours
        description="Admin session TTL in seconds",
        ge=1,
        le=7 * 24 * 60 * 60
    )
    sweep_interval: float = Field(
        30.0,
        description="Seconds between liveness sweeps of realtime connections",
        gt=0,
        le=3600
    )
    send_timeout: float = Field(
        5.0,
        description="Upper bound in seconds for a single broadcast send",
        gt=0,
        le=300
    )
    log_level: str = Field("INFO", description="Logging level")
    log_file: Optional[str] = Field(None, description="Optional rotating log file")
    json_logs: bool = Field(False, description="Emit JSON formatted log lines")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins"
    )
    display: DisplayDefaults = Field(
        default_factory=DisplayDefaults,
        description="Presentation defaults"
    )

    @field_validator('admin_password')
    @classmethod
    def validate_admin_password(cls, v):
        """The admin passphrase is a boot precondition and may not be blank."""
        if v is None or not str(v).strip():
            raise ValueError("ADMIN_PASSWORD must be set to a non-empty value")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate that log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    model_config = {
        "validate_assignment": True,
        "extra": "forbid",  # Forbid extra fields
    }
