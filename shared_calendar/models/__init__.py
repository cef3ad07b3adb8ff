"""Data models for the shared calendar service."""

from .core import (
    ActivityIcon,
    DayEntry,
    KeyItem,
    CalendarDocument,
    CalendarConfig,
    EventKind,
    BroadcastEnvelope,
    MAX_CATEGORIES,
    MAX_ICONS_PER_DAY,
    valid_year,
    empty_document,
    parse_year,
)

from .requests import (
    LoginRequest,
    LoginResponse,
    DataUpdatePayload,
    SaveResponse,
)

from .session import (
    AdminSession,
)

from .errors import (
    ErrorResponse,
    CalendarException,
    AuthenticationException,
    AuthorizationException,
    ValidationException,
    PersistenceException,
)

__all__ = [
    # Core models
    "ActivityIcon",
    "DayEntry",
    "KeyItem",
    "CalendarDocument",
    "CalendarConfig",
    "EventKind",
    "BroadcastEnvelope",
    "MAX_CATEGORIES",
    "MAX_ICONS_PER_DAY",
    "valid_year",
    "empty_document",
    "parse_year",

    # Request/Response models
    "LoginRequest",
    "LoginResponse",
    "DataUpdatePayload",
    "SaveResponse",

    # Session models
    "AdminSession",

    # Error models
    "ErrorResponse",
    "CalendarException",
    "AuthenticationException",
    "AuthorizationException",
    "ValidationException",
    "PersistenceException",
]
