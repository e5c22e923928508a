"""Budget breakdown endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from backend.tripdesk.api.dependencies import get_budget_ledger
from backend.tripdesk.api.responses import envelope
from backend.tripdesk.services.budget_ledger import BudgetLedger

router = APIRouter(prefix="/budget-breakdowns", tags=["budget"])

Ledger = Annotated[BudgetLedger, Depends(get_budget_ledger)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(payload: Annotated[Any, Body()], ledger: Ledger) -> dict[str, Any]:
    """Create a budget line item."""
    return envelope(await ledger.create(payload), message="Budget item created")


@router.get("/itinerary/{itinerary_id}")
async def list_items(itinerary_id: str, ledger: Ledger) -> dict[str, Any]:
    """List the items of an itinerary with totals."""
    return envelope(await ledger.list_for_itinerary(itinerary_id))


@router.get("/itinerary/{itinerary_id}/summary")
async def summary(itinerary_id: str, ledger: Ledger) -> dict[str, Any]:
    """Per-category and overall totals of an itinerary."""
    return envelope(await ledger.summary(itinerary_id))


@router.delete("/itinerary/{itinerary_id}")
async def delete_items(itinerary_id: str, ledger: Ledger) -> dict[str, Any]:
    """Delete every item of an itinerary."""
    deleted = await ledger.delete_for_itinerary(itinerary_id)
    return envelope({"deletedCount": deleted}, message=f"Deleted {deleted} budget items")


@router.get("/{item_id}")
async def get_item(item_id: str, ledger: Ledger) -> dict[str, Any]:
    """Get one budget line item."""
    return envelope(await ledger.get(item_id))


@router.put("/{item_id}")
async def update_item(
    item_id: str, payload: Annotated[Any, Body()], ledger: Ledger
) -> dict[str, Any]:
    """Update a budget line item; its total is recomputed."""
    return envelope(await ledger.update(item_id, payload), message="Budget item updated")


@router.delete("/{item_id}")
async def delete_item(item_id: str, ledger: Ledger) -> dict[str, Any]:
    """Delete a budget line item."""
    await ledger.delete(item_id)
    return envelope(message="Budget item deleted")
