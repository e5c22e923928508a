"""Creation, copying, listing and cascade deletion of day documents."""

import logging
import time
from collections.abc import Callable
from typing import Any

from backend.tripdesk.config import Settings, get_settings
from backend.tripdesk.db.repositories import (
    DayDraft,
    DayRecord,
    DayRepository,
    DuplicateDayError,
    PlanDirectory,
)
from backend.tripdesk.errors import BadRequestError, NotFoundError
from backend.tripdesk.itinerary.normalizer import normalize_activities
from backend.tripdesk.models.common import ItineraryType, plan_kind_for
from backend.tripdesk.models.day import DayView, GeneratedDay, PlanRegistration, TourDayCreate
from backend.tripdesk.models.payloads import parse_payload

logger = logging.getLogger(__name__)


def format_day(day: DayRecord) -> DayView:
    """Render a day document for callers.

    Tour days never expose a day total; their activities carry no cost.
    """
    return DayView(
        id=day.id,
        origin_id=day.origin_id,
        type=day.type,
        day_number=day.day_number,
        title=day.title,
        description=day.description,
        notes=day.notes,
        activities=day.activities,
        day_total=0 if day.type == ItineraryType.tour else day.day_total,
        user_modified=day.user_modified,
        created_at=day.created_at,
        updated_at=day.updated_at,
    )


class DayLifecycleService:
    """Manage whole day documents of a parent plan."""

    def __init__(
        self,
        days: DayRepository,
        plans: PlanDirectory,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._days = days
        self._plans = plans
        self._settings = settings or get_settings()
        self._clock = clock

    async def _require_plan(self, origin_id: str, itinerary_type: ItineraryType) -> None:
        if not self._settings.enable_plan_validation:
            return
        if not await self._plans.plan_exists(origin_id, plan_kind_for(itinerary_type)):
            raise NotFoundError(f"Parent plan not found: {origin_id}")

    async def _insert(self, drafts: list[DayDraft]) -> list[DayRecord]:
        try:
            return await self._days.insert_days(drafts)
        except DuplicateDayError as e:
            raise BadRequestError(str(e)) from e

    async def register_plan(self, plan_id: str, payload: Any) -> None:
        """Record a parent plan so its days pass the existence check.

        Raises:
            BadRequestError: Invalid kind
        """
        data = parse_payload(PlanRegistration, payload)
        await self._plans.register_plan(plan_id, data.kind, data.title)

    async def create_days_from_generated(
        self, origin_id: str, days_payload: Any
    ) -> list[DayView]:
        """Store the days of a generated plan.

        Args:
            origin_id: Generated plan ID
            days_payload: List of generated days (``dayNumber``, ``theme``, activities)

        Returns:
            Created ai_gen days in input order

        Raises:
            BadRequestError: Malformed day list, invalid activities or duplicate days
            NotFoundError: The generated plan does not exist
        """
        if not isinstance(days_payload, list) or not days_payload:
            raise BadRequestError("Days must be a non-empty list")
        generated = [parse_payload(GeneratedDay, raw) for raw in days_payload]
        await self._require_plan(origin_id, ItineraryType.ai_gen)

        drafts = [
            DayDraft(
                origin_id=origin_id,
                type=ItineraryType.ai_gen,
                day_number=day.day_number,
                title=(day.theme or "").strip() or f"Day {day.day_number}",
                description=day.description or "",
                notes=day.notes or "",
                activities=normalize_activities(
                    day.activities, ItineraryType.ai_gen, day.day_number, self._clock
                ),
            )
            for day in generated
        ]
        created = await self._insert(drafts)
        logger.info(
            f"Generated days stored for {origin_id}: {len(created)}",
            extra={"structured": {"origin_id": origin_id, "days": len(created)}},
        )
        return [format_day(day) for day in created]

    async def create_tour_day(self, origin_id: str, payload: Any) -> DayView:
        """Store one provider-entered tour day.

        Raises:
            BadRequestError: Invalid payload or tour activities carrying cost
            NotFoundError: The tour does not exist
        """
        data = parse_payload(TourDayCreate, payload)
        await self._require_plan(origin_id, ItineraryType.tour)

        draft = DayDraft(
            origin_id=origin_id,
            type=ItineraryType.tour,
            day_number=data.day_number,
            title=data.title,
            description=data.description,
            notes=data.notes,
            activities=normalize_activities(data.activities, ItineraryType.tour, data.day_number),
        )
        created = await self._insert([draft])
        return format_day(created[0])

    async def initialize_customization(self, origin_id: str) -> list[DayView]:
        """Copy every generated day of a plan into an editable customized day.

        Days that already have a customized copy are left untouched, so calling
        this twice is harmless.

        Returns:
            All customized days of the plan

        Raises:
            NotFoundError: The plan does not exist or has no generated days
        """
        await self._require_plan(origin_id, ItineraryType.customized)
        generated = await self._days.list_days(origin_id, ItineraryType.ai_gen)
        if not generated:
            raise NotFoundError("No generated days to customize")

        existing = {
            day.day_number
            for day in await self._days.list_days(origin_id, ItineraryType.customized)
        }
        drafts = [
            DayDraft(
                origin_id=origin_id,
                type=ItineraryType.customized,
                day_number=day.day_number,
                title=day.title,
                description=day.description,
                notes=day.notes,
                # Fresh embedded ids; activityIds are kept
                activities=[
                    {k: v for k, v in activity.items() if k != "_id"} for activity in day.activities
                ],
                user_modified=False,
            )
            for day in generated
            if day.day_number not in existing
        ]
        if drafts:
            await self._insert(drafts)
            logger.info(
                f"Customization initialized for {origin_id}: {len(drafts)} days",
                extra={"structured": {"origin_id": origin_id, "days": len(drafts)}},
            )

        customized = await self._days.list_days(origin_id, ItineraryType.customized)
        return [format_day(day) for day in customized]

    async def list_days(
        self, origin_id: str, itinerary_type: ItineraryType | str | None = None
    ) -> list[DayView]:
        """List days of a plan, optionally of one type."""
        kind = None
        if itinerary_type is not None:
            try:
                kind = ItineraryType(itinerary_type)
            except ValueError as e:
                raise BadRequestError(f"Invalid itinerary type: {itinerary_type!r}") from e
        return [format_day(day) for day in await self._days.list_days(origin_id, kind)]

    async def get_day(
        self, origin_id: str, day_number: int, itinerary_type: ItineraryType
    ) -> DayView:
        """Get one day.

        Raises:
            NotFoundError: No such day
        """
        day = await self._days.get_day(origin_id, day_number, itinerary_type)
        if day is None:
            raise NotFoundError("Day not found")
        return format_day(day)

    async def delete_plan_days(self, origin_id: str) -> int:
        """Delete every day of a plan (parent deletion cascade)."""
        count = await self._days.delete_days(origin_id)
        logger.info(
            f"Days deleted for {origin_id}: {count}",
            extra={"structured": {"origin_id": origin_id, "deleted": count}},
        )
        return count

