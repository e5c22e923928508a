"""Common types and enums shared across all models."""

from enum import Enum


class ItineraryType(str, Enum):
    """Discriminator of a day document: which plan it belongs to."""

    tour = "tour"
    ai_gen = "ai_gen"
    customized = "customized"


class TimeSlot(str, Enum):
    """Part of the day an activity is scheduled in."""

    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"
    night = "night"


class ActivityKind(str, Enum):
    """Activity category."""

    food = "food"
    transport = "transport"
    sightseeing = "sightseeing"
    entertainment = "entertainment"
    accommodation = "accommodation"
    shopping = "shopping"
    nature = "nature"
    culture = "culture"
    adventure = "adventure"
    relaxation = "relaxation"
    history = "history"
    leisure = "leisure"
    other = "other"


# Labels produced by plan generators that are not canonical kinds
ACTIVITY_KIND_SYNONYMS: dict[str, ActivityKind] = {
    "cultural": ActivityKind.culture,
    "historical": ActivityKind.history,
    "outdoor": ActivityKind.nature,
    "nightlife": ActivityKind.entertainment,
    "dining": ActivityKind.food,
    "recreational": ActivityKind.leisure,
    "ẩm thực": ActivityKind.food,
    "văn hóa": ActivityKind.culture,
    "thiên nhiên": ActivityKind.nature,
    "giải trí": ActivityKind.entertainment,
    "nghỉ ngơi": ActivityKind.relaxation,
    "du lịch": ActivityKind.sightseeing,
}


class BudgetCategory(str, Enum):
    """Budget line item category."""

    transportation = "transportation"
    accommodation = "accommodation"
    meals = "meals"
    activities = "activities"
    entrance_fees = "entrance_fees"
    guide_fees = "guide_fees"
    insurance = "insurance"
    equipment = "equipment"
    other = "other"


class Currency(str, Enum):
    """Supported budget currencies."""

    VND = "VND"
    USD = "USD"
    EUR = "EUR"


class PlanKind(str, Enum):
    """Kind of parent plan a day document can point at."""

    tour = "tour"
    ai_gen = "ai_gen"


def plan_kind_for(itinerary_type: ItineraryType) -> PlanKind:
    """Parent plan kind for a day type.

    Customized days share the origin id of the generated plan they were copied from.
    """
    if itinerary_type == ItineraryType.tour:
        return PlanKind.tour
    return PlanKind.ai_gen
