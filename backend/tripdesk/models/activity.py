"""Activity models - entries embedded in a day document's activity list.

Two shapes exist. Tour days carry a simple ``{time, action}`` schedule; AI
generated and customized days carry the detailed shape with cost, duration and
category. Both are stored as camelCase JSON objects, so every model here is
validated from and dumped to aliases.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.tripdesk.models.common import ACTIVITY_KIND_SYNONYMS, ActivityKind, TimeSlot

DEFAULT_DURATION_MIN = 60

_NUMBER_RE = re.compile(r"[\d.]+")


def map_activity_type(value: Any) -> ActivityKind:
    """Map a free-form category label onto an ActivityKind.

    Unknown labels fall back to ``other``.
    """
    if isinstance(value, ActivityKind):
        return value
    if not value or not isinstance(value, str):
        return ActivityKind.other

    label = value.strip().lower()
    if label in ActivityKind.__members__:
        return ActivityKind(label)
    return ACTIVITY_KIND_SYNONYMS.get(label, ActivityKind.other)


def parse_duration(value: Any) -> Any:
    """Parse a duration in minutes from a number or a string like "2 hours".

    Returns the default for missing or unparseable input. Numbers pass through
    unchanged so range validation still sees negatives.
    """
    if isinstance(value, bool):
        return DEFAULT_DURATION_MIN
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return round(value)
    if not isinstance(value, str):
        return DEFAULT_DURATION_MIN

    text = value.strip().lower()
    match = _NUMBER_RE.search(text)
    if "hour" in text:
        hours = float(match.group()) if match else 1.0
        return round(hours * 60)
    if "minute" in text:
        return round(float(match.group())) if match else DEFAULT_DURATION_MIN
    try:
        return round(float(text))
    except ValueError:
        return DEFAULT_DURATION_MIN


def parse_cost(value: Any) -> Any:
    """Parse an integer cost; missing or unparseable input counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0


class Activity(BaseModel):
    """Detailed activity used by ai_gen and customized days."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    internal_id: str | None = Field(None, alias="_id")
    activity_id: str = Field(..., alias="activityId", min_length=1)
    name: str = Field(..., min_length=1)
    location: str = ""
    type: ActivityKind = ActivityKind.other
    time_slot: TimeSlot = Field(TimeSlot.morning, alias="timeSlot")
    duration: int = Field(DEFAULT_DURATION_MIN, ge=0)
    cost: int = Field(0, ge=0)
    user_modified: bool = Field(False, alias="userModified")

    @field_validator("type", mode="before")
    @classmethod
    def _map_type(cls, value: Any) -> ActivityKind:
        return map_activity_type(value)

    @field_validator("time_slot", mode="before")
    @classmethod
    def _default_slot(cls, value: Any) -> Any:
        if value is None or value == "":
            return TimeSlot.morning
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("location", mode="before")
    @classmethod
    def _default_location(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("duration", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("cost", mode="before")
    @classmethod
    def _parse_cost(cls, value: Any) -> Any:
        return parse_cost(value)

    def to_document(self) -> dict[str, Any]:
        """Dump to the stored camelCase JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TourActivity(BaseModel):
    """Simple schedule entry used by tour days."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    internal_id: str | None = Field(None, alias="_id")
    time: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)

    def to_document(self) -> dict[str, Any]:
        """Dump to the stored JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Fields of a stored activity that identify it and are never rewritten by updates
ACTIVITY_ID_FIELDS = ("_id", "activityId")


class ActivityUpdate(BaseModel):
    """Partial update of a customized activity.

    Only the declared fields may change. Identifier fields are accepted so a
    client can send back a whole activity, but they are dropped.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1)
    location: str | None = None
    type: str | None = None
    time_slot: str | None = Field(None, alias="timeSlot")
    duration: int | float | str | None = None
    cost: int | float | str | None = None

    # Accepted and ignored
    activity_id: Any = Field(None, alias="activityId", exclude=True)
    internal_id: Any = Field(None, alias="_id", exclude=True)
    user_modified: Any = Field(None, alias="userModified", exclude=True)

    def changes(self) -> dict[str, Any]:
        """Supplied, non-null fields keyed by their stored (alias) names."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
