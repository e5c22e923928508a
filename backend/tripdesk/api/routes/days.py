"""Day document endpoints - plan days, customization and activity mutations."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from backend.tripdesk.api.dependencies import get_day_lifecycle_service, get_day_mutation_service
from backend.tripdesk.api.responses import envelope
from backend.tripdesk.errors import BadRequestError
from backend.tripdesk.models.common import ItineraryType
from backend.tripdesk.services.day_lifecycle import DayLifecycleService
from backend.tripdesk.services.day_mutations import DayMutationService

router = APIRouter(prefix="/plans", tags=["days"])

Lifecycle = Annotated[DayLifecycleService, Depends(get_day_lifecycle_service)]
Mutations = Annotated[DayMutationService, Depends(get_day_mutation_service)]
Payload = Annotated[Any, Body()]


@router.put("/{origin_id}")
async def register_plan(origin_id: str, payload: Payload, lifecycle: Lifecycle) -> dict[str, Any]:
    """Register a parent plan (tour or generated plan)."""
    await lifecycle.register_plan(origin_id, payload)
    return envelope(message="Plan registered")


@router.get("/{origin_id}/days")
async def list_days(
    origin_id: str,
    lifecycle: Lifecycle,
    itinerary_type: Annotated[str | None, Query(alias="type")] = None,
) -> dict[str, Any]:
    """List the days of a plan, optionally filtered by type."""
    return envelope(await lifecycle.list_days(origin_id, itinerary_type))


@router.delete("/{origin_id}/days")
async def delete_plan_days(origin_id: str, lifecycle: Lifecycle) -> dict[str, Any]:
    """Delete every day of a plan (parent deletion cascade)."""
    deleted = await lifecycle.delete_plan_days(origin_id)
    return envelope({"deletedCount": deleted}, message=f"Deleted {deleted} days")


@router.post("/{origin_id}/days/generated", status_code=status.HTTP_201_CREATED)
async def create_generated_days(
    origin_id: str, payload: Payload, lifecycle: Lifecycle
) -> dict[str, Any]:
    """Store the days of a generated plan. Body: ``{"days": [...]}``."""
    days = payload.get("days") if isinstance(payload, dict) else payload
    return envelope(await lifecycle.create_days_from_generated(origin_id, days))


@router.post("/{origin_id}/days/tour", status_code=status.HTTP_201_CREATED)
async def create_tour_day(origin_id: str, payload: Payload, lifecycle: Lifecycle) -> dict[str, Any]:
    """Store one tour day."""
    return envelope(await lifecycle.create_tour_day(origin_id, payload))


@router.post("/{origin_id}/customize", status_code=status.HTTP_201_CREATED)
async def initialize_customization(origin_id: str, lifecycle: Lifecycle) -> dict[str, Any]:
    """Copy the generated days of a plan into editable customized days."""
    days = await lifecycle.initialize_customization(origin_id)
    return envelope(days, message="Customization initialized")


@router.get("/{origin_id}/days/{day_number}")
async def get_day(
    origin_id: str,
    day_number: int,
    lifecycle: Lifecycle,
    itinerary_type: Annotated[str, Query(alias="type")] = ItineraryType.customized.value,
) -> dict[str, Any]:
    """Get one day (customized unless ``type`` says otherwise)."""
    try:
        kind = ItineraryType(itinerary_type)
    except ValueError as e:
        raise BadRequestError(f"Invalid itinerary type: {itinerary_type!r}") from e
    return envelope(await lifecycle.get_day(origin_id, day_number, kind))


@router.patch("/{origin_id}/days/{day_number}")
async def update_day(
    origin_id: str, day_number: int, payload: Payload, mutations: Mutations
) -> dict[str, Any]:
    """Update the theme, description or notes of a customized day."""
    result = await mutations.update_day(origin_id, day_number, payload)
    return envelope(result, message="Day updated")


@router.post("/{origin_id}/days/{day_number}/activities", status_code=status.HTTP_201_CREATED)
async def add_activity(
    origin_id: str, day_number: int, payload: Payload, mutations: Mutations
) -> dict[str, Any]:
    """Append an activity to a customized day."""
    result = await mutations.add_activity(origin_id, day_number, payload)
    return envelope(result, message="Activity added")


@router.put("/{origin_id}/days/{day_number}/activities/order")
async def reorder_activities(
    origin_id: str, day_number: int, payload: Payload, mutations: Mutations
) -> dict[str, Any]:
    """Reorder activities. Body: ``{"activityIds": [...]}``."""
    activity_ids = payload.get("activityIds") if isinstance(payload, dict) else payload
    result = await mutations.reorder_activities(origin_id, day_number, activity_ids)
    return envelope(result, message="Activities reordered")


@router.patch("/{origin_id}/days/{day_number}/activities/{activity_id}")
async def update_activity(
    origin_id: str,
    day_number: int,
    activity_id: str,
    payload: Payload,
    mutations: Mutations,
) -> dict[str, Any]:
    """Update one activity of a customized day."""
    result = await mutations.update_activity(origin_id, day_number, activity_id, payload)
    return envelope(result, message="Activity updated")


@router.delete("/{origin_id}/days/{day_number}/activities/{activity_id}")
async def delete_activity(
    origin_id: str, day_number: int, activity_id: str, mutations: Mutations
) -> dict[str, Any]:
    """Delete one activity of a customized day."""
    result = await mutations.delete_activity(origin_id, day_number, activity_id)
    return envelope(result, message="Activity deleted")
