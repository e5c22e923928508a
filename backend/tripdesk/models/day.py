"""Day document request and result models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.tripdesk.models.common import ItineraryType, PlanKind


class CamelModel(BaseModel):
    """Result model rendered with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DayUpdate(BaseModel):
    """Partial update of a customized day's summary fields."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    theme: str | None = Field(None, min_length=1, description="New day title")
    description: str | None = None
    notes: str | None = None

    def changes(self) -> dict[str, Any]:
        """Supplied, non-null fields keyed by stored column name."""
        supplied = self.model_dump(exclude_unset=True, exclude_none=True)
        if "theme" in supplied:
            supplied["title"] = supplied.pop("theme")
        return supplied


class DaySummary(CamelModel):
    """Result of update_day."""

    day_number: int
    theme: str
    description: str
    notes: str
    day_total: int
    user_modified: bool


class AddedActivity(CamelModel):
    """Result of add_activity."""

    activity: dict[str, Any]
    day_total: int
    total_activities: int


class UpdatedActivity(CamelModel):
    """Result of update_activity."""

    activity: dict[str, Any]
    day_total: int


class DeletedActivity(CamelModel):
    """Result of delete_activity."""

    remaining_activities: int
    day_total: int


class ReorderedActivities(CamelModel):
    """Result of reorder_activities."""

    activities: list[dict[str, Any]]
    total_activities: int


class DayView(BaseModel):
    """Formatted day document."""

    id: str
    origin_id: str
    type: ItineraryType
    day_number: int
    title: str
    description: str
    notes: str
    activities: list[dict[str, Any]]
    day_total: int
    user_modified: bool
    created_at: datetime
    updated_at: datetime


class GeneratedDay(BaseModel):
    """One day of a generated plan, as produced by the plan generator."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    day_number: int = Field(..., ge=1, alias="dayNumber")
    theme: str | None = None
    description: str | None = None
    notes: str | None = None
    activities: list[Any] = Field(default_factory=list)


class TourDayCreate(BaseModel):
    """A tour day as entered by a provider."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    day_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    notes: str = ""
    activities: list[Any] = Field(default_factory=list)


class PlanRegistration(BaseModel):
    """Parent plan announced by the tour or plan-generation side."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    kind: PlanKind
    title: str = ""
