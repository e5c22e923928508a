"""SQLAlchemy ORM models for day documents, budget items and parent plans."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from backend.tripdesk.itinerary.totals import apply_day_total, compute_line_total

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class OriginPlan(Base):
    """Parent plan registry - tours and AI generated plans."""

    __tablename__ = "origin_plan"

    plan_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ItineraryDay(Base):
    """Itinerary day document - one per (origin_id, day_number, type).

    Activities are embedded as an ordered JSON array. ``version`` is the
    optimistic-concurrency token; writes compare and bump it.
    """

    __tablename__ = "itinerary_day"
    __table_args__ = (
        UniqueConstraint("origin_id", "day_number", "type", name="uq_day_origin_number_type"),
        Index("idx_day_origin", "origin_id"),
        Index("idx_day_type", "type"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    # Not a foreign key: the parent may be a tour or a generated plan
    origin_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    activities: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False, default=list)
    day_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_modified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


@event.listens_for(ItineraryDay, "before_insert")
@event.listens_for(ItineraryDay, "before_update")
def _recompute_day_total(mapper: Any, connection: Any, target: ItineraryDay) -> None:
    """Save hook: day_total always follows the activity list."""
    apply_day_total(target)


class BudgetBreakdownItem(Base):
    """Budget line item - independent of day documents, keyed by itinerary."""

    __tablename__ = "budget_breakdown"
    __table_args__ = (
        Index("idx_budget_itinerary_day", "itinerary_id", "day_number"),
        Index("idx_budget_itinerary_category", "itinerary_id", "category"),
        Index("idx_budget_activity", "activity_id"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    itinerary_id: Mapped[str] = mapped_column(String(64), nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # Weak back-reference, no cascade
    activity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    item_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    unit_price: Mapped[float] = mapped_column(Float, nullable=False)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    is_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="VND")
    supplier: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


@event.listens_for(BudgetBreakdownItem, "before_insert")
@event.listens_for(BudgetBreakdownItem, "before_update")
def _recompute_total_price(mapper: Any, connection: Any, target: BudgetBreakdownItem) -> None:
    """Save hook: total_price always follows quantity and unit_price."""
    target.total_price = compute_line_total(target.quantity, target.unit_price)
