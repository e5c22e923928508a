"""SQL implementations of repository interfaces."""

import copy
from dataclasses import replace

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.tripdesk.db.models import BudgetBreakdownItem, ItineraryDay, OriginPlan
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


def _day_record(row: ItineraryDay) -> DayRecord:
    return DayRecord(
        id=row.id,
        origin_id=row.origin_id,
        type=ItineraryType(row.type),
        day_number=row.day_number,
        title=row.title,
        description=row.description or "",
        notes=row.notes or "",
        activities=copy.deepcopy(row.activities or []),
        day_total=row.day_total,
        user_modified=row.user_modified,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _item_record(row: BudgetBreakdownItem) -> BudgetItemRecord:
    return BudgetItemRecord(
        id=row.id,
        itinerary_id=row.itinerary_id,
        day_number=row.day_number,
        activity_id=row.activity_id,
        category=row.category,
        item_name=row.item_name,
        description=row.description,
        quantity=row.quantity,
        unit_price=row.unit_price,
        total_price=row.total_price,
        is_included=row.is_included,
        is_optional=row.is_optional,
        currency=row.currency,
        supplier=copy.deepcopy(row.supplier),
        notes=row.notes,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlDayRepository:
    """SQL implementation of DayRepository.

    Reads use ``populate_existing`` so a row changed by another writer is
    never served from this session's identity map. Saves are a single
    ``UPDATE ... WHERE id = :id AND version = :version``; zero matched rows
    means someone else won the race.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_day(
        self, origin_id: str, day_number: int, itinerary_type: ItineraryType
    ) -> DayRecord | None:
        """Get the day identified by (origin_id, day_number, type)."""
        stmt = (
            select(ItineraryDay)
            .where(
                ItineraryDay.origin_id == origin_id,
                ItineraryDay.day_number == day_number,
                ItineraryDay.type == itinerary_type.value,
            )
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _day_record(row) if row else None

    async def get_day_by_id(self, day_id: str) -> DayRecord | None:
        """Get a day by its storage ID."""
        stmt = (
            select(ItineraryDay)
            .where(ItineraryDay.id == day_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _day_record(row) if row else None

    async def list_days(
        self, origin_id: str, itinerary_type: ItineraryType | None = None
    ) -> list[DayRecord]:
        """List days of a plan ordered by day number."""
        stmt = select(ItineraryDay).where(ItineraryDay.origin_id == origin_id)
        if itinerary_type is not None:
            stmt = stmt.where(ItineraryDay.type == itinerary_type.value)
        stmt = stmt.order_by(ItineraryDay.day_number, ItineraryDay.type).execution_options(
            populate_existing=True
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_day_record(row) for row in rows]

    async def insert_days(self, drafts: list[DayDraft]) -> list[DayRecord]:
        """Insert new days (all or nothing)."""
        now = utcnow()
        rows = [
            ItineraryDay(
                id=new_id(),
                origin_id=draft.origin_id,
                type=draft.type.value,
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
            for draft in drafts
        ]
        self._session.add_all(rows)
        try:
            # Flush runs the save hook, so day_total is final before commit
            await self._session.flush()
            created = [_day_record(row) for row in rows]
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateDayError(
                "Day already exists for origin, day number and type"
            ) from e
        return created

    async def save_day(self, day: DayRecord) -> DayRecord:
        """Persist a modified day using compare-and-swap on its version."""
        record = replace(
            day,
            activities=assign_embedded_ids(copy.deepcopy(day.activities)),
            version=day.version + 1,
            updated_at=utcnow(),
        )
        apply_day_total(record)

        stmt = (
            update(ItineraryDay)
            .where(ItineraryDay.id == day.id, ItineraryDay.version == day.version)
            .values(
                title=record.title,
                description=record.description,
                notes=record.notes,
                activities=record.activities,
                day_total=record.day_total,
                user_modified=record.user_modified,
                version=record.version,
                updated_at=record.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            await self._session.rollback()
            raise StaleVersionError("day", day.id, day.version)

        await self._session.commit()
        return record

    async def delete_days(self, origin_id: str) -> int:
        """Delete all days of a plan."""
        result = await self._session.execute(
            delete(ItineraryDay)
            .where(ItineraryDay.origin_id == origin_id)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()
        return result.rowcount or 0


class SqlBudgetRepository:
    """SQL implementation of BudgetRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_item(self, draft: BudgetItemDraft) -> BudgetItemRecord:
        """Create a line item; ``total_price`` is computed on write."""
        now = utcnow()
        row = BudgetBreakdownItem(
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
        self._session.add(row)
        await self._session.flush()
        record = _item_record(row)
        await self._session.commit()
        return record

    async def get_item(self, item_id: str) -> BudgetItemRecord | None:
        """Get a line item by ID."""
        stmt = (
            select(BudgetBreakdownItem)
            .where(BudgetBreakdownItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _item_record(row) if row else None

    async def list_items(self, itinerary_id: str) -> list[BudgetItemRecord]:
        """List items of an itinerary ordered by (day_number, category)."""
        stmt = (
            select(BudgetBreakdownItem)
            .where(BudgetBreakdownItem.itinerary_id == itinerary_id)
            .order_by(BudgetBreakdownItem.day_number, BudgetBreakdownItem.category)
            .execution_options(populate_existing=True)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_item_record(row) for row in rows]

    async def save_item(self, item: BudgetItemRecord) -> BudgetItemRecord:
        """Persist a modified item using compare-and-swap on its version."""
        record = replace(
            item,
            total_price=compute_line_total(item.quantity, item.unit_price),
            version=item.version + 1,
            updated_at=utcnow(),
        )

        stmt = (
            update(BudgetBreakdownItem)
            .where(BudgetBreakdownItem.id == item.id, BudgetBreakdownItem.version == item.version)
            .values(
                day_number=record.day_number,
                activity_id=record.activity_id,
                category=record.category,
                item_name=record.item_name,
                description=record.description,
                quantity=record.quantity,
                unit_price=record.unit_price,
                total_price=record.total_price,
                is_included=record.is_included,
                is_optional=record.is_optional,
                currency=record.currency,
                supplier=record.supplier,
                notes=record.notes,
                version=record.version,
                updated_at=record.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            await self._session.rollback()
            raise StaleVersionError("budget_item", item.id, item.version)

        await self._session.commit()
        return record

    async def delete_item(self, item_id: str) -> bool:
        """Delete one item."""
        result = await self._session.execute(
            delete(BudgetBreakdownItem)
            .where(BudgetBreakdownItem.id == item_id)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()
        return bool(result.rowcount)

    async def delete_items(self, itinerary_id: str) -> int:
        """Delete every item of an itinerary."""
        result = await self._session.execute(
            delete(BudgetBreakdownItem)
            .where(BudgetBreakdownItem.itinerary_id == itinerary_id)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()
        return result.rowcount or 0

    async def totals(self, itinerary_id: str) -> BudgetTotals:
        """Total, included and optional sums for an itinerary."""
        price = func.coalesce(BudgetBreakdownItem.total_price, 0)
        stmt = select(
            func.coalesce(func.sum(price), 0),
            func.coalesce(func.sum(case((BudgetBreakdownItem.is_included, price), else_=0)), 0),
            func.coalesce(func.sum(case((BudgetBreakdownItem.is_optional, price), else_=0)), 0),
        ).where(BudgetBreakdownItem.itinerary_id == itinerary_id)
        total, included_total, optional_total = (await self._session.execute(stmt)).one()
        return BudgetTotals(
            total=float(total),
            included_total=float(included_total),
            optional_total=float(optional_total),
        )

    async def category_totals(self, itinerary_id: str) -> list[CategoryTotal]:
        """Per-category sums sorted by total descending."""
        total = func.coalesce(func.sum(func.coalesce(BudgetBreakdownItem.total_price, 0)), 0).label(
            "total"
        )
        stmt = (
            select(BudgetBreakdownItem.category, total, func.count().label("items_count"))
            .where(BudgetBreakdownItem.itinerary_id == itinerary_id)
            .group_by(BudgetBreakdownItem.category)
            .order_by(total.desc(), BudgetBreakdownItem.category)
        )
        rows = (await self._session.execute(stmt)).all()
        return [
            CategoryTotal(
                category=BudgetCategory(row.category),
                total=float(row.total),
                items_count=row.items_count,
            )
            for row in rows
        ]


class SqlPlanDirectory:
    """SQL implementation of PlanDirectory over the ``origin_plan`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def plan_exists(self, plan_id: str, kind: PlanKind) -> bool:
        """Check whether a parent plan of the given kind exists."""
        stmt = select(OriginPlan.plan_id).where(
            OriginPlan.plan_id == plan_id, OriginPlan.kind == kind.value
        )
        return (await self._session.execute(stmt)).first() is not None

    async def register_plan(self, plan_id: str, kind: PlanKind, title: str) -> None:
        """Record a parent plan (idempotent)."""
        existing = await self._session.get(OriginPlan, plan_id)
        if existing is None:
            self._session.add(
                OriginPlan(plan_id=plan_id, kind=kind.value, title=title, created_at=utcnow())
            )
        else:
            existing.kind = kind.value
            existing.title = title
        await self._session.commit()
