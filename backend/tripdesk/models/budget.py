"""Budget breakdown models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.tripdesk.models.common import BudgetCategory, Currency


class Supplier(BaseModel):
    """Supplier/vendor of a budget line item."""

    name: str | None = None
    contact: str | None = None


class BudgetItemCreate(BaseModel):
    """New budget line item. ``total_price`` is always computed server-side."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    itinerary_id: str = Field(..., min_length=1)
    category: BudgetCategory
    item_name: str = Field(..., min_length=1)
    unit_price: float = Field(..., ge=0)
    day_number: int = Field(..., ge=1)
    quantity: float = Field(1, ge=0)
    description: str | None = None
    is_included: bool = True
    is_optional: bool = False
    activity_id: str | None = None
    supplier: Supplier | None = None
    currency: Currency | None = None
    notes: str | None = None

    # Accepted and ignored
    total_price: Any = Field(None, exclude=True)


# Columns that must never be set to null by an update
_NON_NULLABLE = frozenset(
    {"category", "item_name", "unit_price", "quantity", "day_number", "is_included", "is_optional", "currency"}
)


class BudgetItemUpdate(BaseModel):
    """Partial update of a budget line item."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    category: BudgetCategory | None = None
    item_name: str | None = Field(None, min_length=1)
    unit_price: float | None = Field(None, ge=0)
    quantity: float | None = Field(None, ge=0)
    day_number: int | None = Field(None, ge=1)
    description: str | None = None
    is_included: bool | None = None
    is_optional: bool | None = None
    activity_id: str | None = None
    supplier: Supplier | None = None
    currency: Currency | None = None
    notes: str | None = None

    # Accepted and ignored
    id: Any = Field(None, exclude=True)
    itinerary_id: Any = Field(None, exclude=True)
    total_price: Any = Field(None, exclude=True)
    version: Any = Field(None, exclude=True)
    created_at: Any = Field(None, exclude=True)
    updated_at: Any = Field(None, exclude=True)

    @model_validator(mode="after")
    def _reject_null_required(self) -> "BudgetItemUpdate":
        nulled = sorted(
            name for name in self.model_fields_set & _NON_NULLABLE if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Supplied fields, including explicit nulls on nullable columns."""
        return self.model_dump(mode="json", exclude_unset=True)


class BudgetItemView(BaseModel):
    """Budget line item as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    itinerary_id: str
    day_number: int
    activity_id: str | None
    category: BudgetCategory
    item_name: str
    description: str | None
    quantity: float
    unit_price: float
    total_price: float
    is_included: bool
    is_optional: bool
    currency: Currency
    supplier: Supplier | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class BudgetTotals(BaseModel):
    """Itinerary-wide budget totals."""

    total: float = 0
    included_total: float = 0
    optional_total: float = 0


class CategoryTotal(BaseModel):
    """Budget total for one category."""

    category: BudgetCategory
    total: float
    items_count: int


class BudgetSummary(BaseModel):
    """Category breakdown and totals for one itinerary."""

    itinerary_id: str
    itinerary_title: str
    day_number: int
    categories: list[CategoryTotal]
    totals: BudgetTotals


class BudgetListingSummary(BudgetTotals):
    """Totals attached to an item listing."""

    by_category: list[CategoryTotal]
    item_count: int


class BudgetListing(BaseModel):
    """All items of an itinerary with their summary."""

    items: list[BudgetItemView]
    summary: BudgetListingSummary
