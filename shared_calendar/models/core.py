"""Core data models for the shared calendar document."""

import re
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config.models import HEADER_STYLES, DisplayDefaults


MAX_CATEGORIES = 5
MAX_ICONS_PER_DAY = 4
MIN_YEAR = 1
MAX_YEAR = 9999

_DATE_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


class ActivityIcon(BaseModel):
    """An activity marker placed on a single day."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(None, description="Per-placement identifier")
    value: str = Field(..., description="Icon name, copied from the activity key item")
    color: Optional[str] = Field(None, description="Icon color, copied from the activity key item")


class DayEntry(BaseModel):
    """Per-date record of location text, details, category and activity icons."""

    model_config = ConfigDict(extra="allow")

    day: Optional[int] = Field(None, description="Day of month")
    month: Optional[str] = Field(None, description="Month name")
    year: Optional[int] = Field(None, description="Calendar year")
    locations: Optional[str] = Field("", description="Comma separated location text")
    details: Optional[str] = Field("", description="Rich text detail body")
    colorId: Optional[str] = Field("none", description="Category key item id or 'none'")
    icons: List[ActivityIcon] = Field(
        default_factory=list,
        description="Ordered activity icons",
        max_length=MAX_ICONS_PER_DAY
    )


class KeyItem(BaseModel):
    """A legend entry: a day-coloring category or a selectable activity icon."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Key item identifier")
    label: str = Field(..., description="Display label")
    isColorKey: bool = Field(..., description="True for categories, False for activities")
    colorCode: Optional[str] = Field(None, description="Category color id")
    icon: Optional[str] = Field(None, description="Icon name")
    iconColor: Optional[str] = Field(None, description="Icon color class")
    showCount: bool = Field(False, description="Show the aggregate count in the legend")

    @field_validator('id')
    @classmethod
    def validate_id(cls, v):
        """Ensure ID is not empty."""
        if not v or not v.strip():
            raise ValueError("Key item ID cannot be empty")
        return v


class CalendarDocument(BaseModel):
    """Write-side shape of a per-year calendar document.

    Only used as a gate: the stored record is the JSON body that passed it,
    so fields unknown to this model survive unchanged.
    """

    model_config = ConfigDict(extra="allow")

    dayData: Dict[str, DayEntry] = Field(..., description="Day entries keyed by YYYY-MM-DD")
    keyItems: List[KeyItem] = Field(..., description="Ordered legend entries")
    lastUpdatedText: Optional[str] = Field(..., description="Free-text last updated marker")

    @field_validator('dayData')
    @classmethod
    def validate_date_keys(cls, v):
        """Ensure every day key is a real calendar date."""
        for key in v:
            match = _DATE_KEY_PATTERN.match(key)
            if not match:
                raise ValueError(f"Day key {key!r} is not in YYYY-MM-DD form")
            try:
                date(*(int(part) for part in match.groups()))
            except ValueError:
                raise ValueError(f"Day key {key!r} is not a valid date")
        return v

    @model_validator(mode='after')
    def validate_key_items(self):
        """Categories are capped and key item ids must be unique."""
        categories = [item for item in self.keyItems if item.isColorKey]
        if len(categories) > MAX_CATEGORIES:
            raise ValueError(f"At most {MAX_CATEGORIES} category key items are allowed")

        seen = set()
        for item in self.keyItems:
            if item.id in seen:
                raise ValueError(f"Duplicate key item id: {item.id}")
            seen.add(item.id)
        return self

    def day_keys_outside(self, year: int) -> List[str]:
        """Return day keys that do not belong to ``year``."""
        return [key for key in self.dayData if int(key[:4]) != year]


class CalendarConfig(BaseModel):
    """Year-independent presentation configuration record."""

    model_config = ConfigDict(extra="allow")

    headerName: Optional[str] = Field(None, description="Page header name")
    headerStyle: str = Field("simple", description="'simple', 'possessive' or 'question'")
    ownerName: Optional[str] = Field("", description="Owner name used in the header")
    timezone: str = Field("UTC", description="IANA timezone")
    bannerHtml: Optional[str] = Field(None, description="Optional HTML banner")

    @field_validator('headerStyle')
    @classmethod
    def validate_header_style(cls, v):
        """Validate that header style is one of the supported options."""
        if v not in HEADER_STYLES:
            raise ValueError(f"Header style must be one of: {', '.join(sorted(HEADER_STYLES))}")
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v):
        """Timezone must be a known IANA zone name."""
        if not v or not v.strip():
            raise ValueError("Timezone cannot be empty")
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @classmethod
    def from_defaults(cls, defaults: DisplayDefaults) -> "CalendarConfig":
        return cls(
            headerName=defaults.header_name,
            headerStyle=defaults.header_style,
            ownerName=defaults.owner_name,
            timezone=defaults.timezone,
            bannerHtml=defaults.banner_html,
        )


class EventKind(str, Enum):
    """Discriminator of realtime messages."""

    DATA_UPDATE = "DATA_UPDATE"
    CONFIG_UPDATE = "CONFIG_UPDATE"


class BroadcastEnvelope(BaseModel):
    """Immutable message pushed to realtime clients."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    kind: EventKind = Field(..., description="Message kind")
    payload: Any = Field(None, description="Full new state for whatever changed")

    def to_wire(self) -> str:
        return self.model_dump_json()


def valid_year(year: Any) -> bool:
    """Years are partition keys and become file names, so only plain ints in range qualify."""
    return isinstance(year, int) and not isinstance(year, bool) and MIN_YEAR <= year <= MAX_YEAR


def empty_document() -> Dict[str, Any]:
    """Sentinel returned for a year that has never been written."""
    return {}


def parse_year(value: Any) -> Optional[int]:
    """Year from a URL path segment, or None if it is not a number."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
