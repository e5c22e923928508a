"""Models package - re-exports for convenience."""

from backend.tripdesk.models.activity import (
    ACTIVITY_ID_FIELDS,
    Activity,
    ActivityUpdate,
    TourActivity,
)
from backend.tripdesk.models.budget import (
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetItemView,
    BudgetListing,
    BudgetListingSummary,
    BudgetSummary,
    BudgetTotals,
    CategoryTotal,
    Supplier,
)
from backend.tripdesk.models.common import (
    ActivityKind,
    BudgetCategory,
    Currency,
    ItineraryType,
    PlanKind,
    TimeSlot,
)
from backend.tripdesk.models.day import (
    AddedActivity,
    DaySummary,
    DayUpdate,
    DayView,
    DeletedActivity,
    GeneratedDay,
    PlanRegistration,
    ReorderedActivities,
    TourDayCreate,
    UpdatedActivity,
)

__all__ = [
    # Common
    "ItineraryType",
    "TimeSlot",
    "ActivityKind",
    "BudgetCategory",
    "Currency",
    "PlanKind",
    # Activities
    "Activity",
    "TourActivity",
    "ActivityUpdate",
    "ACTIVITY_ID_FIELDS",
    # Days
    "DayUpdate",
    "DaySummary",
    "AddedActivity",
    "UpdatedActivity",
    "DeletedActivity",
    "ReorderedActivities",
    "DayView",
    "GeneratedDay",
    "TourDayCreate",
    "PlanRegistration",
    # Budget
    "Supplier",
    "BudgetItemCreate",
    "BudgetItemUpdate",
    "BudgetItemView",
    "BudgetTotals",
    "CategoryTotal",
    "BudgetSummary",
    "BudgetListingSummary",
    "BudgetListing",
]
