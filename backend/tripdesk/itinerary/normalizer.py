"""Activity list validation and normalization.

Pure functions, no I/O: given a raw activity list and the type of the day it
belongs to, decide whether it is acceptable and produce the canonical stored
form. Normalizing an already normalized list returns it unchanged; fresh ids
are generated only for activities that lack one.
"""

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from backend.tripdesk.errors import BadRequestError
from backend.tripdesk.models.activity import Activity, TourActivity
from backend.tripdesk.models.common import ItineraryType
from backend.tripdesk.models.payloads import describe_validation_error

# Keys a generator or client may use for the activity name, in priority order
_NAME_KEYS = ("name", "activity", "action")


@dataclass(frozen=True)
class ActivityValidation:
    """Outcome of validate_activities."""

    valid: bool
    error: str | None = None


def _coerce_type(itinerary_type: ItineraryType | str) -> ItineraryType:
    try:
        return ItineraryType(itinerary_type)
    except ValueError as e:
        raise BadRequestError(f"Invalid itinerary type: {itinerary_type!r}") from e


def _activity_name(raw: Mapping[str, Any]) -> Any:
    for key in _NAME_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _prepare_detailed(raw: Mapping[str, Any], activity_id: str | None) -> dict[str, Any]:
    """Collect the detailed-shape fields from a raw activity."""
    user_modified = raw.get("userModified", raw.get("user_modified"))
    prepared: dict[str, Any] = {
        "activityId": activity_id,
        "name": _activity_name(raw),
        "location": raw.get("location"),
        "type": raw.get("type") or raw.get("activityType"),
        "timeSlot": raw.get("timeSlot"),
        "duration": raw.get("duration"),
        "cost": raw.get("cost"),
        # Parsed by the bool field
        "userModified": False if user_modified is None else user_modified,
    }
    if raw.get("_id") is not None:
        prepared["_id"] = str(raw["_id"])
    return prepared


def _prepare_tour(raw: Mapping[str, Any]) -> dict[str, Any]:
    prepared: dict[str, Any] = {"time": raw.get("time"), "action": raw.get("action") or raw.get("name")}
    if raw.get("_id") is not None:
        prepared["_id"] = str(raw["_id"])
    return prepared


def _existing_id(raw: Mapping[str, Any]) -> str | None:
    value = raw.get("activityId")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_activities(
    activities: Any, itinerary_type: ItineraryType | str
) -> ActivityValidation:
    """Check an activity list against the rules of a day type.

    Args:
        activities: Raw activity list (any JSON value)
        itinerary_type: Type of the owning day

    Returns:
        ActivityValidation with the first problem found, if any
    """
    try:
        kind = _coerce_type(itinerary_type)
    except BadRequestError as e:
        return ActivityValidation(valid=False, error=e.message)

    if not isinstance(activities, list):
        return ActivityValidation(valid=False, error="Activities must be a list")

    seen_ids: set[str] = set()
    for index, raw in enumerate(activities):
        if not isinstance(raw, Mapping):
            return ActivityValidation(valid=False, error=f"Activity #{index + 1} must be an object")

        if kind == ItineraryType.tour:
            if "cost" in raw:
                return ActivityValidation(
                    valid=False, error="Tour activities do not support per-activity cost"
                )
            try:
                TourActivity.model_validate(_prepare_tour(raw))
            except ValidationError:
                return ActivityValidation(
                    valid=False, error="Tour activities must have time and action fields"
                )
            continue

        if _activity_name(raw) is None:
            return ActivityValidation(valid=False, error="Activities must have a name")

        activity_id = _existing_id(raw)
        if activity_id is not None:
            if activity_id in seen_ids:
                return ActivityValidation(
                    valid=False, error=f"Duplicate activityId: {activity_id}"
                )
            seen_ids.add(activity_id)

        try:
            # Placeholder id: generated ids are always well formed
            Activity.model_validate(_prepare_detailed(raw, activity_id or "pending"))
        except ValidationError as e:
            return ActivityValidation(valid=False, error=describe_validation_error(e))

    return ActivityValidation(valid=True)


def generate_activity_id(
    day_number: int | None,
    taken: Iterable[str] = (),
    now: Callable[[], float] = time.time,
) -> str:
    """Build a fresh ``activity_{day}_{timestamp_ms}`` id not present in ``taken``."""
    prefix = "activity" if day_number is None else f"activity_{day_number}"
    base = f"{prefix}_{int(now() * 1000)}"
    taken_ids = set(taken)
    candidate = base
    suffix = 2
    while candidate in taken_ids:
        candidate = f"{base}_{suffix}"
        suffix += 1
    return candidate


def normalize_activities(
    activities: Sequence[Mapping[str, Any]],
    itinerary_type: ItineraryType | str,
    day_number: int | None = None,
    now: Callable[[], float] = time.time,
) -> list[dict[str, Any]]:
    """Canonicalize an activity list for storage.

    Args:
        activities: Raw activity list
        itinerary_type: Type of the owning day
        day_number: Day number used in generated activity ids
        now: Clock returning epoch seconds

    Returns:
        Activities in stored camelCase form, same order as the input

    Raises:
        BadRequestError: If the list does not pass validate_activities
    """
    kind = _coerce_type(itinerary_type)
    result = validate_activities(activities, kind)
    if not result.valid:
        raise BadRequestError(result.error)

    if kind == ItineraryType.tour:
        return [TourActivity.model_validate(_prepare_tour(raw)).to_document() for raw in activities]

    taken = {aid for aid in (_existing_id(raw) for raw in activities) if aid is not None}
    normalized: list[dict[str, Any]] = []
    for raw in activities:
        activity_id = _existing_id(raw)
        if activity_id is None:
            activity_id = generate_activity_id(day_number, taken, now)
            taken.add(activity_id)
        normalized.append(Activity.model_validate(_prepare_detailed(raw, activity_id)).to_document())

    return normalized
