"""In-memory implementations of repository interfaces."""

import copy
from dataclasses import replace

from backend.tripdesk.db.repositories import (
    BudgetItemDraft,
    BudgetItemRecord,
    DayDraft,
    DayRecord,
    DuplicateDayError,
    StaleVersionError,
    assign_embedded_ids,
    new_id,
    utcnow,
)
from backend.tripdesk.itinerary.totals import apply_day_total, compute_line_total
from backend.tripdesk.models.budget import BudgetTotals, CategoryTotal
from backend.tripdesk.models.common import BudgetCategory, ItineraryType, PlanKind


class InMemoryDayRepository:
    """In-memory implementation of DayRepository."""

    def __init__(self) -> None:
        self._days: dict[str, DayRecord] = {}

    def _find(
        self, origin_id: str, day_number: int, itinerary_type: ItineraryType
    ) -> DayRecord | None:
        for day in self._days.values():
            if (
                day.origin_id == origin_id
                and day.day_number == day_number
                and day.type == itinerary_type
            ):
                return day
        return None

    async def get_day(
        self, origin_id: str, day_number: int, itinerary_type: ItineraryType
    ) -> DayRecord | None:
        """Get the day identified by (origin_id, day_number, type)."""
        day = self._find(origin_id, day_number, itinerary_type)
        return copy.deepcopy(day) if day else None

    async def get_day_by_id(self, day_id: str) -> DayRecord | None:
        """Get a day by its storage ID."""
        day = self._days.get(day_id)
        return copy.deepcopy(day) if day else None

    async def list_days(
        self, origin_id: str, itinerary_type: ItineraryType | None = None
    ) -> list[DayRecord]:
        """List days of a plan ordered by day number."""
        days = [
            copy.deepcopy(day)
            for day in self._days.values()
            if day.origin_id == origin_id and (itinerary_type is None or day.type == itinerary_type)
        ]
        days.sort(key=lambda d: (d.day_number, d.type.value))
        return days

    async def insert_days(self, drafts: list[DayDraft]) -> list[DayRecord]:
        """Insert new days (all or nothing)."""
        keys = [(d.origin_id, d.day_number, d.type) for d in drafts]
        if len(set(keys)) != len(keys) or any(self._find(*key) for key in keys):
            raise DuplicateDayError("Day already exists for origin, day number and type")

        now = utcnow()
        created: list[DayRecord] = []
        for draft in drafts:
            record = DayRecord(
                id=new_id(),
                origin_id=draft.origin_id,
                type=draft.type,
                day_number=draft.day_number,
                title=draft.title,
                description=draft.description,
                notes=draft.notes,
                activities=assign_embedded_ids(copy.deepcopy(draft.activities)),
                day_total=0,
                user_modified=draft.user_modified,
                version=1,
                created_at=now,
                updated_at=now,
            )
            apply_day_total(record)
            self._days[record.id] = record
            created.append(copy.deepcopy(record))
        return created

    async def save_day(self, day: DayRecord) -> DayRecord:
        """Persist a modified day using compare-and-swap on its version."""
        stored = self._days.get(day.id)
        if stored is None or stored.version != day.version:
            raise StaleVersionError("day", day.id, day.version)

        record = replace(
            copy.deepcopy(day),
            activities=assign_embedded_ids(copy.deepcopy(day.activities)),
            version=stored.version + 1,
            created_at=stored.created_at,
            updated_at=utcnow(),
        )
        apply_day_total(record)
        self._days[record.id] = record
        return copy.deepcopy(record)

    async def delete_days(self, origin_id: str) -> int:
        """Delete all days of a plan."""
        doomed = [day_id for day_id, day in self._days.items() if day.origin_id == origin_id]
        for day_id in doomed:
            del self._days[day_id]
        return len(doomed)


class InMemoryBudgetRepository:
    """In-memory implementation of BudgetRepository."""

    def __init__(self) -> None:
        self._items: dict[str, BudgetItemRecord] = {}

    async def create_item(self, draft: BudgetItemDraft) -> BudgetItemRecord:
        """Create a line item; ``total_price`` is computed on write."""
        now = utcnow()
        record = BudgetItemRecord(
            id=new_id(),
            itinerary_id=draft.itinerary_id,
            day_number=draft.day_number,
            activity_id=draft.activity_id,
            category=draft.category,
            item_name=draft.item_name,
            description=draft.description,
            quantity=draft.quantity,
            unit_price=draft.unit_price,
            total_price=compute_line_total(draft.quantity, draft.unit_price),
            is_included=draft.is_included,
            is_optional=draft.is_optional,
            currency=draft.currency,
            supplier=copy.deepcopy(draft.supplier),
            notes=draft.notes,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self._items[record.id] = record
        return copy.deepcopy(record)

    async def get_item(self, item_id: str) -> BudgetItemRecord | None:
        """Get a line item by ID."""
        item = self._items.get(item_id)
        return copy.deepcopy(item) if item else None

    def _for_itinerary(self, itinerary_id: str) -> list[BudgetItemRecord]:
        return [item for item in self._items.values() if item.itinerary_id == itinerary_id]

    async def list_items(self, itinerary_id: str) -> list[BudgetItemRecord]:
        """List items of an itinerary ordered by (day_number, category)."""
        items = [copy.deepcopy(item) for item in self._for_itinerary(itinerary_id)]
        items.sort(key=lambda item: (item.day_number, item.category))
        return items

    async def save_item(self, item: BudgetItemRecord) -> BudgetItemRecord:
        """Persist a modified item using compare-and-swap on its version."""
        stored = self._items.get(item.id)
        if stored is None or stored.version != item.version:
            raise StaleVersionError("budget_item", item.id, item.version)

        record = replace(
            copy.deepcopy(item),
            total_price=compute_line_total(item.quantity, item.unit_price),
            version=stored.version + 1,
            created_at=stored.created_at,
            updated_at=utcnow(),
        )
        self._items[record.id] = record
        return copy.deepcopy(record)

    async def delete_item(self, item_id: str) -> bool:
        """Delete one item."""
        return self._items.pop(item_id, None) is not None

    async def delete_items(self, itinerary_id: str) -> int:
        """Delete every item of an itinerary."""
        doomed = [item.id for item in self._for_itinerary(itinerary_id)]
        for item_id in doomed:
            del self._items[item_id]
        return len(doomed)

    async def totals(self, itinerary_id: str) -> BudgetTotals:
        """Total, included and optional sums for an itinerary."""
        totals = BudgetTotals()
        for item in self._for_itinerary(itinerary_id):
            price = item.total_price or 0
            totals.total += price
            if item.is_included:
                totals.included_total += price
            if item.is_optional:
                totals.optional_total += price
        return totals

    async def category_totals(self, itinerary_id: str) -> list[CategoryTotal]:
        """Per-category sums sorted by total descending."""
        grouped: dict[str, tuple[float, int]] = {}
        for item in self._for_itinerary(itinerary_id):
            total, count = grouped.get(item.category, (0, 0))
            grouped[item.category] = (total + (item.total_price or 0), count + 1)

        results = [
            CategoryTotal(category=BudgetCategory(category), total=total, items_count=count)
            for category, (total, count) in grouped.items()
        ]
        results.sort(key=lambda c: (-c.total, c.category.value))
        return results


class InMemoryPlanDirectory:
    """In-memory implementation of PlanDirectory."""

    def __init__(self) -> None:
        self._plans: dict[str, tuple[PlanKind, str]] = {}

    async def plan_exists(self, plan_id: str, kind: PlanKind) -> bool:
        """Check whether a parent plan of the given kind exists."""
        plan = self._plans.get(plan_id)
        return plan is not None and plan[0] == kind

    async def register_plan(self, plan_id: str, kind: PlanKind, title: str) -> None:
        """Record a parent plan."""
        self._plans[plan_id] = (kind, title)
