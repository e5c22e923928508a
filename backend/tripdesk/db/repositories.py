"""Repository protocol interfaces for data access."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from backend.tripdesk.models.budget import BudgetTotals, CategoryTotal
from backend.tripdesk.models.common import ItineraryType, PlanKind


class StaleVersionError(Exception):
    """A write supplied a version token that is no longer current."""

    def __init__(self, entity: str, entity_id: str, expected_version: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(f"{entity} {entity_id} changed since version {expected_version}")


class DuplicateDayError(Exception):
    """A day already exists for (origin_id, day_number, type)."""


@dataclass
class DayDraft:
    """Day document not yet persisted."""

    origin_id: str
    type: ItineraryType
    day_number: int
    title: str
    description: str = ""
    notes: str = ""
    activities: list[dict[str, Any]] = field(default_factory=list)
    user_modified: bool = False


@dataclass
class DayRecord:
    """Persisted day document.

    ``version`` is the optimistic-concurrency token read with the record;
    ``save_day`` only succeeds while it is still current.
    """

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
    version: int
    created_at: datetime
    updated_at: datetime


@dataclass
class BudgetItemDraft:
    """Budget line item not yet persisted."""

    itinerary_id: str
    day_number: int
    category: str
    item_name: str
    unit_price: float
    quantity: float = 1
    description: str | None = None
    is_included: bool = True
    is_optional: bool = False
    activity_id: str | None = None
    supplier: dict[str, Any] | None = None
    currency: str = "VND"
    notes: str | None = None


@dataclass
class BudgetItemRecord:
    """Persisted budget line item."""

    id: str
    itinerary_id: str
    day_number: int
    activity_id: str | None
    category: str
    item_name: str
    description: str | None
    quantity: float
    unit_price: float
    total_price: float
    is_included: bool
    is_optional: bool
    currency: str
    supplier: dict[str, Any] | None
    notes: str | None
    version: int
    created_at: datetime
    updated_at: datetime


def utcnow() -> datetime:
    """Timezone-aware current time used for record timestamps."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a storage id."""
    return uuid.uuid4().hex


def assign_embedded_ids(activities: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Give every embedded activity a storage-internal ``_id`` if it lacks one."""
    return [a if a.get("_id") else {**a, "_id": new_id()} for a in activities]


class DayRepository(Protocol):
    """Repository for itinerary day documents."""

    async def get_day(
        self, origin_id: str, day_number: int, itinerary_type: ItineraryType
    ) -> DayRecord | None:
        """Get the day identified by (origin_id, day_number, type).

        Args:
            origin_id: Parent plan ID
            day_number: 1-based day number
            itinerary_type: Day type

        Returns:
            Day record or None if not found
        """
        ...

    async def get_day_by_id(self, day_id: str) -> DayRecord | None:
        """Get a day by its storage ID.

        Args:
            day_id: Day document ID

        Returns:
            Day record or None if not found
        """
        ...

    async def list_days(
        self, origin_id: str, itinerary_type: ItineraryType | None = None
    ) -> list[DayRecord]:
        """List days of a plan ordered by day number.

        Args:
            origin_id: Parent plan ID
            itinerary_type: Optional type filter

        Returns:
            Day records
        """
        ...

    async def insert_days(self, drafts: list[DayDraft]) -> list[DayRecord]:
        """Insert new days (all or nothing).

        Args:
            drafts: Days to create

        Returns:
            Created records in input order

        Raises:
            DuplicateDayError: If any (origin_id, day_number, type) already exists
        """
        ...

    async def save_day(self, day: DayRecord) -> DayRecord:
        """Persist a modified day using compare-and-swap on its version.

        Recomputes ``day_total`` and assigns embedded activity ids first.

        Args:
            day: Record as loaded and then mutated

        Returns:
            The stored record with its new version

        Raises:
            StaleVersionError: If the stored version differs from ``day.version``
        """
        ...

    async def delete_days(self, origin_id: str) -> int:
        """Delete all days of a plan.

        Args:
            origin_id: Parent plan ID

        Returns:
            Number of deleted days
        """
        ...


class BudgetRepository(Protocol):
    """Repository for budget line items."""

    async def create_item(self, draft: BudgetItemDraft) -> BudgetItemRecord:
        """Create a line item; ``total_price`` is computed on write."""
        ...

    async def get_item(self, item_id: str) -> BudgetItemRecord | None:
        """Get a line item by ID."""
        ...

    async def list_items(self, itinerary_id: str) -> list[BudgetItemRecord]:
        """List items of an itinerary ordered by (day_number, category)."""
        ...

    async def save_item(self, item: BudgetItemRecord) -> BudgetItemRecord:
        """Persist a modified item using compare-and-swap on its version.

        Raises:
            StaleVersionError: If the stored version differs from ``item.version``
        """
        ...

    async def delete_item(self, item_id: str) -> bool:
        """Delete one item. Returns False if it did not exist."""
        ...

    async def delete_items(self, itinerary_id: str) -> int:
        """Delete every item of an itinerary. Returns the count removed."""
        ...

    async def totals(self, itinerary_id: str) -> BudgetTotals:
        """Total, included and optional sums for an itinerary."""
        ...

    async def category_totals(self, itinerary_id: str) -> list[CategoryTotal]:
        """Per-category sums sorted by total descending."""
        ...


class PlanDirectory(Protocol):
    """Existence checks against parent plans (tours and generated plans)."""

    async def plan_exists(self, plan_id: str, kind: PlanKind) -> bool:
        """Check whether a parent plan of the given kind exists.

        Args:
            plan_id: Parent plan ID
            kind: Plan kind

        Returns:
            True if it exists
        """
        ...

    async def register_plan(self, plan_id: str, kind: PlanKind, title: str) -> None:
        """Record a parent plan (idempotent)."""
        ...
