"""Activity-level mutations on customized day documents.

Only ``customized`` days are addressable here; tour and generated days are
reported as not found. Every write goes through the repository's version
compare-and-swap, and every operation except ``delete_activity`` re-reads and
retries on conflict.
"""

import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from backend.tripdesk.db.repositories import DayRecord, DayRepository
from backend.tripdesk.errors import BadRequestError, NotFoundError, ServiceError
from backend.tripdesk.itinerary.normalizer import (
    generate_activity_id,
    normalize_activities,
    validate_activities,
)
from backend.tripdesk.models.activity import ACTIVITY_ID_FIELDS, ActivityUpdate
from backend.tripdesk.models.common import ItineraryType
from backend.tripdesk.models.day import (
    AddedActivity,
    DaySummary,
    DayUpdate,
    DeletedActivity,
    ReorderedActivities,
    UpdatedActivity,
)
from backend.tripdesk.models.payloads import parse_payload
from backend.tripdesk.services.retry import NO_RETRY, RetryPolicy, retry_on_conflict
from backend.tripdesk.utils.logging import StructuredMutationLogger
from backend.tripdesk.utils.metrics import MutationMetrics, PrometheusMutationMetrics

T = TypeVar("T")


def find_activity_index(activities: list[dict[str, Any]], activity_id: str) -> int | None:
    """Position of the activity matching ``activity_id`` by ``_id`` or ``activityId``."""
    for index, activity in enumerate(activities):
        if any(activity.get(key) == activity_id for key in ACTIVITY_ID_FIELDS):
            return index
    return None


def reorder(activities: list[dict[str, Any]], activity_ids: list[str]) -> list[dict[str, Any]]:
    """Put named activities first in the requested order, then the rest.

    Unknown ids are ignored and repeated ids count once; activities not named
    keep their original relative order.
    """
    remaining = list(activities)
    ordered: list[dict[str, Any]] = []
    for activity_id in activity_ids:
        index = find_activity_index(remaining, activity_id)
        if index is not None:
            ordered.append(remaining.pop(index))
    return ordered + remaining


class DayMutationService:
    """Add, update, delete and reorder activities of customized days."""

    def __init__(
        self,
        days: DayRepository,
        retry_policy: RetryPolicy | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        logger: StructuredMutationLogger | None = None,
        metrics: MutationMetrics | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize service.

        Args:
            days: Day document repository
            retry_policy: Conflict retry policy (default: from settings)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            logger: Structured logger
            metrics: Metrics recorder (default: Prometheus)
            clock: Epoch-seconds clock used for generated activity ids
        """
        self._days = days
        self._policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep_fn
        self._logger = logger or StructuredMutationLogger()
        self._metrics = metrics or PrometheusMutationMetrics()
        self._clock = clock

    async def _load(self, origin_id: str, day_number: int) -> DayRecord:
        day = await self._days.get_day(origin_id, day_number, ItineraryType.customized)
        if day is None:
            raise NotFoundError("Customized day not found")
        return day

    async def _run(
        self,
        op_name: str,
        origin_id: str,
        day_number: int,
        operation: Callable[[], Awaitable[T]],
        *,
        retry: bool = True,
    ) -> T:
        try:
            result = await retry_on_conflict(
                operation,
                policy=self._policy if retry else NO_RETRY,
                op_name=op_name,
                sleep_fn=self._sleep,
                logger=self._logger,
                metrics=self._metrics,
                context={"origin_id": origin_id, "day_number": day_number},
            )
        except ServiceError as e:
            self._metrics.inc_day_mutation(op_name, e.code)
            raise
        self._metrics.inc_day_mutation(op_name, "success")
        return result

    async def update_day(
        self, origin_id: str, day_number: int, payload: Any
    ) -> DaySummary:
        """Overwrite the supplied summary fields of a day.

        Args:
            origin_id: Parent plan ID
            day_number: 1-based day number
            payload: Partial ``{theme, description, notes}``

        Returns:
            Updated summary fields with the current day total

        Raises:
            BadRequestError: Unknown field or invalid value
            NotFoundError: No customized day
            ConflictError: Retries exhausted
        """
        changes = parse_payload(DayUpdate, payload).changes()

        async def attempt() -> DaySummary:
            day = await self._load(origin_id, day_number)
            for field, value in changes.items():
                setattr(day, field, value)
            day.user_modified = True
            saved = await self._days.save_day(day)
            return DaySummary(
                day_number=saved.day_number,
                theme=saved.title,
                description=saved.description,
                notes=saved.notes,
                day_total=saved.day_total,
                user_modified=saved.user_modified,
            )

        return await self._run("update_day", origin_id, day_number, attempt)

    async def add_activity(
        self, origin_id: str, day_number: int, payload: Any
    ) -> AddedActivity:
        """Append a normalized activity to the end of a day.

        A caller-supplied ``activityId`` must not already exist in the day.

        Raises:
            BadRequestError: Invalid activity or duplicate activityId
            NotFoundError: No customized day
            ConflictError: Retries exhausted
        """
        if not isinstance(payload, dict):
            raise BadRequestError("Activity must be an object")
        check = validate_activities([payload], ItineraryType.customized)
        if not check.valid:
            raise BadRequestError(check.error)

        async def attempt() -> AddedActivity:
            day = await self._load(origin_id, day_number)
            # Either id field addresses an activity
            taken = {a[key] for a in day.activities for key in ACTIVITY_ID_FIELDS if a.get(key)}

            raw = {**payload, "userModified": True}
            raw.pop("_id", None)
            requested_id = str(raw.get("activityId") or "").strip()
            if requested_id:
                if requested_id in taken:
                    raise BadRequestError(f"Duplicate activityId: {requested_id}")
            else:
                raw["activityId"] = generate_activity_id(day_number, taken, self._clock)

            activity = normalize_activities(
                [raw], ItineraryType.customized, day_number, self._clock
            )[0]
            day.activities.append(activity)
            day.user_modified = True
            saved = await self._days.save_day(day)
            return AddedActivity(
                activity=saved.activities[-1],
                day_total=saved.day_total,
                total_activities=len(saved.activities),
            )

        return await self._run("add_activity", origin_id, day_number, attempt)

    async def update_activity(
        self, origin_id: str, day_number: int, activity_id: str, payload: Any
    ) -> UpdatedActivity:
        """Merge allowed fields into one activity.

        Identifier fields in the payload are ignored; ``null`` means unchanged.

        Raises:
            BadRequestError: Unknown field or invalid merged activity
            NotFoundError: No customized day or no such activity
            ConflictError: Retries exhausted
        """
        changes = parse_payload(ActivityUpdate, payload).changes()

        async def attempt() -> UpdatedActivity:
            day = await self._load(origin_id, day_number)
            index = find_activity_index(day.activities, activity_id)
            if index is None:
                raise NotFoundError("Activity not found")

            merged = {**day.activities[index], **changes, "userModified": True}
            day.activities[index] = normalize_activities(
                [merged], ItineraryType.customized, day_number, self._clock
            )[0]
            day.user_modified = True
            saved = await self._days.save_day(day)
            return UpdatedActivity(activity=saved.activities[index], day_total=saved.day_total)

        return await self._run("update_activity", origin_id, day_number, attempt)

    async def delete_activity(
        self, origin_id: str, day_number: int, activity_id: str
    ) -> DeletedActivity:
        """Remove one activity. A conflict is surfaced without retrying.

        Raises:
            NotFoundError: No customized day or no such activity
            ConflictError: The day changed since it was read
        """

        async def attempt() -> DeletedActivity:
            day = await self._load(origin_id, day_number)
            index = find_activity_index(day.activities, activity_id)
            if index is None:
                raise NotFoundError("Activity not found")

            del day.activities[index]
            day.user_modified = True
            saved = await self._days.save_day(day)
            return DeletedActivity(
                remaining_activities=len(saved.activities), day_total=saved.day_total
            )

        return await self._run("delete_activity", origin_id, day_number, attempt, retry=False)

    async def reorder_activities(
        self, origin_id: str, day_number: int, activity_ids: Any
    ) -> ReorderedActivities:
        """Rebuild the activity list in the given order.

        Args:
            origin_id: Parent plan ID
            day_number: 1-based day number
            activity_ids: Ordered list of activityIds (or internal ids)

        Raises:
            BadRequestError: If ``activity_ids`` is not a list of strings
            NotFoundError: No customized day
            ConflictError: Retries exhausted
        """
        if not isinstance(activity_ids, list) or not all(
            isinstance(activity_id, str) for activity_id in activity_ids
        ):
            raise BadRequestError("activityIds must be an array of strings")

        async def attempt() -> ReorderedActivities:
            day = await self._load(origin_id, day_number)
            day.activities = reorder(day.activities, activity_ids)
            day.user_modified = True
            saved = await self._days.save_day(day)
            return ReorderedActivities(
                activities=saved.activities, total_activities=len(saved.activities)
            )

        return await self._run("reorder_activities", origin_id, day_number, attempt)
